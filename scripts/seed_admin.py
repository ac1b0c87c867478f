import sys
import os
import asyncio
import getpass

# Add the project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from src.auth.service import create_admin
from src.database.core import Base, SessionLocal, engine
from src.entities.admin import AdminRole
from src.exceptions.auth import AdminAlreadyExistsError

# Import models to register them
from src.entities.category import Category  # noqa: F401
from src.entities.product import Product  # noqa: F401
from src.entities.activity_log import ActivityLog  # noqa: F401


async def seed_super_admin():
    print("Storefront CMS - criação do super administrador\n")

    email = input("Email: ").strip()
    name = input("Nome: ").strip()
    password = getpass.getpass("Senha: ")
    if not email or not name or len(password) < 8:
        print("Email, nome e uma senha de pelo menos 8 caracteres são obrigatórios.")
        return

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        try:
            admin = await create_admin(db, email, password, name, AdminRole.SUPER_ADMIN)
        except AdminAlreadyExistsError as e:
            print(e.detail)
            return

    print(f"\nSuper administrador criado: {admin.id} ({admin.email})")
    print("Faça login em POST /api/v1/admin/auth/login")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_super_admin())
