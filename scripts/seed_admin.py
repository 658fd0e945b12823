# scripts/seed_admin.py
import argparse
import asyncio
from db.db_operation import mongo_conn
from utils.hash import hash_password
from datetime import datetime

async def seed(email: str, password: str, phone: str):
    users = mongo_conn.users_collection
    existing = await users.find_one({"email": email})
    if existing:
        print("Admin already exists:", email)
        return
    now = datetime.utcnow()
    admin_doc = {
        "email": email,
        "name": "YumRun Admin",
        "phone": phone,
        "password": hash_password(password),
        "role": "admin",
        "token_version": 0,
        "is_active": True,
        "created_at": now,
        "updated_at": now
    }
    result = await users.insert_one(admin_doc)
    print("Created admin:", email, result.inserted_id)

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the initial YumRun admin account")
    parser.add_argument("--email", default="admin@yumrun.com")
    parser.add_argument("--password", required=True)
    parser.add_argument("--phone", default="9800000000")
    args = parser.parse_args()
    asyncio.run(seed(args.email, args.password, args.phone))
