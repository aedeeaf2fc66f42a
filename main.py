# main.py: Point d'entrée pour le serveur uvicorn.
# Ce fichier importe l'application créée par l'app factory
# et s'assure que la table du stockage local existe.

import logging

from dotenv import load_dotenv

# Charger les variables d'environnement au tout début
load_dotenv()

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

from database import create_db_and_tables
from app_factory import create_app #qui se trouve dans app_factory.py

# Crée la table du stockage local si elle n'existe pas encore.
# C'est une opération idempotente : elle ne recréera pas la table si elle existe déjà.
create_db_and_tables()

app = create_app()
