# backend/focus_challenge/db/seed_data.py
# Outils de remplissage initial : ping du store, réglages par défaut, tâches par défaut, compte admin, état du challenge.

import asyncio
import os
import sys

from dotenv import load_dotenv
from rich import print

from focus_challenge.core.settings import get_settings
from focus_challenge.models.task import TASKS_COLLECTION
from focus_challenge.models.user_progress import USERS_COLLECTION
from focus_challenge.services.challenge.repository import ChallengeSettingsRepository
from focus_challenge.services.tasks_service import TasksService
from focus_challenge.store.base import SERVER_TIMESTAMP, DocumentStore
from focus_challenge.store.factory import get_store

load_dotenv()


async def test_connection(store: DocumentStore):
    """Teste la connexion au store (ping).

    Description:
        En cas d'échec, affiche un message et termine le processus avec un code d'erreur.
    """
    try:
        await store.ping()
        print("✅ Connexion au store réussie.")
    except Exception as e:
        print(f"❌ Échec de la connexion au store : {e}")
        sys.exit(1)


async def seed_default_tasks(store: DocumentStore, force: bool = False) -> int:
    """Insère les tâches par défaut (jours 0 à 14).

    Description:
        Collection non vide et `force=False` : rien n'est modifié.
        `force=True` : toutes les tâches sont supprimées puis réinsérées.

    Args:
        store (DocumentStore): Store cible.
        force (bool, optional): Réinitialiser la collection. Par défaut `False`.

    Returns:
        int: Nombre de tâches insérées.
    """
    service = TasksService(store)
    existing = await store.query(TASKS_COLLECTION)
    if existing and not force:
        print(f"🔁 Collection '{TASKS_COLLECTION}' non vide ({len(existing)} documents). Rien modifié.")
        return 0
    if existing:
        deleted = await service.clear_all_tasks()
        print(f"♻️ Collection '{TASKS_COLLECTION}' vidée ({deleted} documents, force=True).")
    inserted = await service.initialize_default_tasks()
    print(f"✅ {inserted} tâches insérées dans '{TASKS_COLLECTION}'.")
    return inserted


async def seed_admin_user(store: DocumentStore) -> bool:
    """Crée ou met à jour l'utilisateur administrateur.

    Description:
        Lit `ADMIN_UID`, `ADMIN_NAME`, `ADMIN_EMAIL` depuis l'environnement. Sans
        `ADMIN_UID`, l'étape est ignorée (pas d'authentification dans ce backend).

    Returns:
        bool: True si un admin a été écrit.
    """
    admin_uid = os.getenv("ADMIN_UID")
    if not admin_uid:
        print("ℹ️  ADMIN_UID absent : pas de compte admin créé.")
        return False

    fields = {
        "name": os.getenv("ADMIN_NAME", "Admin"),
        "email": os.getenv("ADMIN_EMAIL", ""),
        "role": "admin",
        "updated_at": SERVER_TIMESTAMP,
    }
    if not await store.update_fields(USERS_COLLECTION, admin_uid, fields):
        await store.set_document(
            USERS_COLLECTION,
            admin_uid,
            {**fields, "progress": {}, "points": {}, "total_points": 0, "rank": 0, "joined_at": SERVER_TIMESTAMP},
        )
    print("✅ Admin user seeded/updated.")
    return True


async def seed_defaults(store: DocumentStore, force: bool = False) -> None:
    """Seed idempotent : réglages du challenge, tâches par défaut et admin."""
    await ChallengeSettingsRepository(store).load()
    await seed_default_tasks(store, force=force)
    await seed_admin_user(store)


async def show_status(store: DocumentStore) -> None:
    """Affiche l'état courant du challenge (diagnostic)."""
    settings = await ChallengeSettingsRepository(store).load()
    print("[bold]Current Challenge Settings:[/bold]")
    print(settings.model_dump(mode="json"))
    print("\n[bold]Key Properties:[/bold]")
    print(f"- status: {settings.status}")
    print(f"- is_active: {settings.is_active}")
    print(f"- is_paused: {settings.is_paused}")
    print(f"- current_day: {settings.current_day}")
    print(f"- trial_enabled: {settings.trial_enabled}")
    print(f"- challenge_days length: {len(settings.challenge_days)}")


async def main(force: bool = False, status_only: bool = False):
    store = get_store()
    await test_connection(store)
    if status_only:
        await show_status(store)
        return
    if get_settings().store_backend == "mongo":
        from focus_challenge.db.seed_indexes import ensure_indexes

        await ensure_indexes()
    await seed_defaults(store, force=force)


if __name__ == "__main__":
    asyncio.run(main(force="--force" in sys.argv, status_only="--status" in sys.argv))
