"""Seed a demo student and a demo admin. Safe to run repeatedly.

Both sign in with a phone number, which maps to ``user_<phone>@<domain>``.
"""

import asyncio
import os

from dotenv import load_dotenv

load_dotenv()

from sqlalchemy import select  # noqa: E402

from syllabuser.core.database import SessionLocal  # noqa: E402
from syllabuser.models.account import Account  # noqa: E402
from syllabuser.services.documents import Collections, SqlDocumentStore  # noqa: E402
from syllabuser.services.identity import IdentityProvider, login_email_for  # noqa: E402
from syllabuser.services.student import StudentService  # noqa: E402

DEMO_ACCOUNTS = [
    # (name, phone, password, is_admin)
    ("Demo Student", os.getenv("DEMO_STUDENT_PHONE", "01700000000"), os.getenv("DEMO_STUDENT_PASSWORD", "student123"), False),
    ("Demo Admin", os.getenv("DEMO_ADMIN_PHONE", "01800000000"), os.getenv("DEMO_ADMIN_PASSWORD", "admin123"), True),
]


def ensure_account(name: str, phone: str, password: str) -> Account:
    email = login_email_for(phone)
    with SessionLocal() as db:
        account = db.execute(select(Account).where(Account.email == email)).scalar_one_or_none()
        if account:
            print(f"Account exists: {email}")
            return account
        account = IdentityProvider(db).create_account(name, email, password, phone)
        db.commit()
        print(f"Created account: {email}")
        return account


async def seed() -> None:
    store = SqlDocumentStore()
    students = StudentService(store)

    for name, phone, password, is_admin in DEMO_ACCOUNTS:
        account = ensure_account(name, phone, password)

        if await store.find_document(Collections.USERS, account.id) is None:
            await students.create_profile(account)
            print(f"  Created profile for {name}")

        if is_admin and await store.find_document(Collections.ADMINS, account.id) is None:
            await store.create_document(Collections.ADMINS, {"user_id": account.id}, document_id=account.id)
            print(f"  Granted admin to {name}")


if __name__ == "__main__":
    asyncio.run(seed())
    print("Done!")
