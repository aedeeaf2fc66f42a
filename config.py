# config.py
"""
Fichier de configuration centralisée pour le backend Marketing Management.
Les valeurs sont lues depuis l'environnement (fichier .env chargé par main.py).
"""
import os

# Configuration de la sécurité JWT (JSON Web Token)
SECRET_KEY = os.getenv("SECRET_KEY", "change_me_marketing_management_secret_key")  # IMPORTANT: à remplacer en production
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Stockage local (équivalent du localStorage du navigateur)
LOCAL_STORAGE_URL = os.getenv("LOCAL_STORAGE_URL", "sqlite:///./marketing_management.db")

# Stockage distant (documents)
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017/")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "marketing_management")

# Fournisseur d'authentification distant (API REST Firebase Auth)
FIREBASE_API_KEY = os.getenv("FIREBASE_API_KEY", "")
FIREBASE_AUTH_URL = "https://identitytoolkit.googleapis.com/v1"
FIREBASE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

# Valeur par défaut du drapeau de mode d'authentification si la clé n'existe pas encore
USE_MOCK_AUTH = os.getenv("USE_MOCK_AUTH", "true").lower() != "false"
SEED_DEFAULT_USERS = os.getenv("SEED_DEFAULT_USERS", "true").lower() != "false"

# --- Clés du stockage local ---
# Elles doivent rester identiques pour relire les données déjà enregistrées.
STORAGE_PREFIX = "marketing_management_website"
USERS_KEY = f"{STORAGE_PREFIX}_users"
PROJECTS_KEY = f"{STORAGE_PREFIX}_projects"
TICKETS_KEY = f"{STORAGE_PREFIX}_tickets"
MESSAGES_KEY = f"{STORAGE_PREFIX}_messages"
FILE_SHARES_KEY = f"{STORAGE_PREFIX}_file_shares"
WEBSITE_ANALYTICS_KEY = f"{STORAGE_PREFIX}_website_analytics"
SOCIAL_MEDIA_ANALYTICS_KEY = f"{STORAGE_PREFIX}_social_media_analytics"
MONTHLY_ANALYTICS_KEY = "marketing_management_monthly_analytics"

CURRENT_USER_KEY = f"{STORAGE_PREFIX}_current_user"
REMOTE_CREDENTIAL_KEY = f"{STORAGE_PREFIX}_remote_credential"
AUTH_MODE_KEY = "useMockAuth"

# Collections distantes
USERS_COLLECTION = "users"
PROJECTS_COLLECTION = "projects"
