"""
Copie les utilisateurs et les projets du stockage local vers MongoDB.
Les documents dont l'_id existe déjà sont laissés tels quels.

Usage : python migrate_to_remote.py
"""
import pymongo
from dotenv import load_dotenv

load_dotenv()

from config import MONGO_DB_NAME, MONGO_URI, PROJECTS_COLLECTION, USERS_COLLECTION
from database import create_db_and_tables
from storage import LocalStorage, MongoRepository, build_data_store
from schemas import Project, User


def copy_collection(source, target: MongoRepository, label: str):
    copied, skipped = 0, 0
    for item in source.get_all():
        if target.get_by_id(item.id) is not None:
            skipped += 1
            continue
        if isinstance(item, User):
            # Les mots de passe restent chez le fournisseur d'authentification
            item = item.model_copy(update={"password": None})
        target.add(item)
        copied += 1
    print(f"{label} : {copied} copié(s), {skipped} déjà présent(s).")


def migrate_to_remote():
    """
    Se connecte à MongoDB et y copie les utilisateurs et projets locaux.
    """
    client = None
    try:
        create_db_and_tables()
        local = build_data_store(LocalStorage())

        client = pymongo.MongoClient(MONGO_URI)
        db = client[MONGO_DB_NAME]

        copy_collection(local.users, MongoRepository(db, USERS_COLLECTION, User, "user", kind="user"), "Utilisateurs")
        copy_collection(
            local.projects, MongoRepository(db, PROJECTS_COLLECTION, Project, "proj", kind="project"), "Projets"
        )
        print("Migration terminée. Passez le mode d'authentification à 'distant' puis redémarrez le serveur.")

    except pymongo.errors.ConnectionFailure as e:
        print(f"Erreur de connexion à MongoDB : {e}")
    except pymongo.errors.PyMongoError as e:
        print(f"Erreur MongoDB pendant la migration : {e}")
    finally:
        if client:
            client.close()


if __name__ == "__main__":
    migrate_to_remote()
