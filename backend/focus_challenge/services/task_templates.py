# backend/focus_challenge/services/task_templates.py
# Contenu des tâches par défaut (jours 0 à 14) et modèles cycliques pour générer un challenge de N jours.

TRIAL_TASK = {
    "day_number": 0,
    "title": "Trial Day - Prepare Your Heart",
    "description": (
        "Today is your preparation day. Set your intention (niyyah) for the Focus Challenge "
        "journey ahead. Read about the challenge and prepare mentally and spiritually."
    ),
    "points": 10,
    "category": "trial",
    "difficulty": "easy",
    "estimated_time": "10 minutes",
    "tips": ["Make a sincere intention (niyyah)", "Read about Islamic practices", "Prepare your mindset for the journey"],
}

# Modèles réutilisés en boucle par generate_tasks_for_challenge (jour 1 = modèle 0)
TASK_TEMPLATES = [
    {
        "title": "Greet Fellow Muslims",
        "description": "Greet at least 10 Muslims with 'As-salamu alaykum' today and respond with 'Wa alaykumu s-salam' when greeted.",
        "points": 20, "category": "social", "difficulty": "easy", "estimated_time": "Throughout the day",
        "tips": ["Smile when greeting", "Make eye contact", "Be the first to greet"],
    },
    {
        "title": "Fajr Prayer in Congregation",
        "description": "Pray Fajr Salah in Jama'ah (congregation) at the mosque or with family.",
        "points": 30, "category": "worship", "difficulty": "medium", "estimated_time": "30 minutes",
        "tips": ["Set multiple alarms", "Sleep early the night before", "Make wudu before sleeping"],
    },
    {
        "title": "Share Islamic Knowledge",
        "description": "Share a Hadith, Qur'an ayah, or give a brief Islamic reminder to someone today.",
        "points": 25, "category": "knowledge", "difficulty": "medium", "estimated_time": "15 minutes",
        "tips": ["Choose something you understand well", "Share with wisdom and kindness", "Use appropriate timing"],
    },
    {
        "title": "Use Islamic Phrases",
        "description": "Consciously use 'JazakAllahu Khair', 'Insha'Allah', 'MashAllah', 'SubhanAllah' at least 10 times today.",
        "points": 15, "category": "identity", "difficulty": "easy", "estimated_time": "Throughout the day",
        "tips": ["Be mindful of your speech", "Use them sincerely", "Explain meanings when asked"],
    },
    {
        "title": "Maintain Islamic Identity",
        "description": "Maintain visible Islamic identity: dress modestly, use natural fragrance, maintain Islamic appearance.",
        "points": 20, "category": "identity", "difficulty": "easy", "estimated_time": "All day",
        "tips": ["Choose modest clothing", "Use miswak or maintain oral hygiene", "Apply natural fragrance"],
    },
    {
        "title": "Dhikr and Remembrance",
        "description": "Engage in dhikr (remembrance of Allah) for at least 15 minutes. Recite Tasbih, Tahmid, or read Quran.",
        "points": 25, "category": "worship", "difficulty": "easy", "estimated_time": "15 minutes",
        "tips": ["Use prayer beads if available", "Find a quiet place", "Focus on meaning"],
    },
    {
        "title": "Help Someone in Need",
        "description": "Perform an act of kindness or help someone today, following the Sunnah of helping others.",
        "points": 30, "category": "social", "difficulty": "medium", "estimated_time": "Varies",
        "tips": ["Look for opportunities around you", "Help with sincerity", "No act of kindness is too small"],
    },
]

# Jours 8 à 14 du jeu par défaut (les jours 1 à 7 reprennent TASK_TEMPLATES)
_EXTRA_DEFAULT_DAYS = [
    {
        "title": "Learn New Islamic Knowledge",
        "description": "Learn something new about Islam today - read a hadith, learn a dua, or study an Islamic topic.",
        "points": 25, "category": "knowledge", "difficulty": "medium", "estimated_time": "20 minutes",
        "tips": ["Use authentic sources", "Take notes", "Share what you learn"],
    },
    {
        "title": "Practice Patience and Forgiveness",
        "description": "Consciously practice patience (Sabr) in difficult situations and forgive someone who wronged you.",
        "points": 35, "category": "identity", "difficulty": "hard", "estimated_time": "Throughout the day",
        "tips": ["Remember Allah when angry", "Take deep breaths", "Remember the reward of patience"],
    },
    {
        "title": "Night Prayer (Tahajjud)",
        "description": "Wake up for Tahajjud prayer and pray at least 2 rakats during the last third of the night.",
        "points": 40, "category": "worship", "difficulty": "hard", "estimated_time": "20 minutes",
        "tips": ["Calculate last third of night", "Make sincere dua", "Start with 2 rakats"],
    },
    {
        "title": "Give Charity (Sadaqah)",
        "description": "Give charity today, whether money, food, or any form of help to those in need.",
        "points": 30, "category": "social", "difficulty": "medium", "estimated_time": "10 minutes",
        "tips": ["Give according to your ability", "Give privately when possible", "Smile is also charity"],
    },
    {
        "title": "Family and Community Connection",
        "description": "Strengthen ties with family or Muslim community. Visit, call, or spend quality time together.",
        "points": 25, "category": "social", "difficulty": "easy", "estimated_time": "1 hour",
        "tips": ["Be fully present", "Listen actively", "Express gratitude"],
    },
    {
        "title": "Reflect and Seek Forgiveness",
        "description": "Spend time in self-reflection, seek Allah's forgiveness (Istighfar), and plan for continued improvement.",
        "points": 30, "category": "worship", "difficulty": "medium", "estimated_time": "30 minutes",
        "tips": ["Find a quiet place", "Be sincere in repentance", "Make plans for the future"],
    },
    {
        "title": "Complete the Challenge - Future Commitment",
        "description": "Complete your final reflection and make a commitment to continue practicing what you've learned.",
        "points": 50, "category": "final", "difficulty": "medium", "estimated_time": "45 minutes",
        "tips": ["Write down your experiences", "Set future goals", "Thank Allah for guidance"],
    },
]

DEFAULT_TASKS = [TRIAL_TASK] + [
    {"day_number": day_number, **template}
    for day_number, template in enumerate(TASK_TEMPLATES + _EXTRA_DEFAULT_DAYS, start=1)
]
