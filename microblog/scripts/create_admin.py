import asyncio
import sys

from microblog.crud.user import get_user_by_username, set_role
from microblog.db.database import AsyncSessionLocal
from microblog.schemas.enums import Role


async def make_admin(username: str) -> bool:
    async with AsyncSessionLocal() as session:
        user = await get_user_by_username(session, username)
        if user:
            await set_role(session, user, Role.ADMIN)
            print(f"{user.username} is now admin.")
            return True
        print("User not found.")
        return False


def main() -> int:
    if len(sys.argv) != 2:
        print("Usage: python -m microblog.scripts.create_admin <username>")
        return 2
    return 0 if asyncio.run(make_admin(sys.argv[1])) else 1


if __name__ == "__main__":
    sys.exit(main())
