"""
josh — Hello World

A named store, a pluggable provider, and dotted paths into your values.
"""

import asyncio

from josh import Josh


async def main():
    # ──────────────────────────────────────
    #  1. Create a store (in-memory by default)
    # ──────────────────────────────────────
    users = Josh("users", auto_ensure={"name": "", "tags": [], "visits": 0})

    # ──────────────────────────────────────
    #  2. Write whole values, then parts of them
    # ──────────────────────────────────────
    for name in ("alice", "bob", "carol"):
        uid = await users.auto_id()
        await users.set(uid, {"name": name, "tags": [], "visits": 0})

    await users.push("1.tags", "admin")
    await users.inc("1.visits")
    await users.update("2", {"tags": ["ops"]})
    await users.math("3.visits", "+", 10)

    # ──────────────────────────────────────
    #  3. Read it back
    # ──────────────────────────────────────
    print("alice:", await users.get("1"))
    print("missing user:", await users.get("99"))
    print("admins:", await users.filter(lambda u: "admin" in u["tags"]))
    print("first busy user:", await users.find(lambda visits: visits > 5, "visits"))
    print("names:", await users.map("name"))

    # ──────────────────────────────────────
    #  4. Export, then import into a second store
    # ──────────────────────────────────────
    backup = await users.export_json()
    copy = Josh("users-copy")
    await copy.import_json(backup)
    print("copied keys:", await copy.keys())

    await users.destroy()


if __name__ == "__main__":
    asyncio.run(main())
