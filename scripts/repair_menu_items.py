# scripts/repair_menu_items.py
"""
Re-point menu items whose ``restaurant`` reference is missing, self-referencing,
an owner's user id, or dangling.

    python -m scripts.repair_menu_items --restaurant-id <id>           # dry run
    python -m scripts.repair_menu_items --restaurant-id <id> --apply   # write
"""
import argparse
import asyncio
from core.exceptions import AppException
from db.db_operation import mongo_conn
from services.repair_service import plan_menu_item_repairs, apply_menu_item_repairs

async def run(restaurant_id: str, apply: bool, actor: str | None) -> int:
    try:
        plan = await plan_menu_item_repairs(restaurant_id)
    except AppException as e:
        print(f"error: {e.detail}")
        return 1

    print(f"Scanned {plan['scanned']} menu items, {len(plan['repairs'])} need repair")
    for r in plan["repairs"]:
        print(f"  {r['item_id']} {r['item_name']!r}: {r['reason']} {r['old_restaurant']} -> {r['new_restaurant']}")

    if not apply:
        print("Dry run, nothing written. Re-run with --apply to write these changes.")
        return 0
    result = await apply_menu_item_repairs(plan, actor_email=actor)
    print(f"Applied {result['applied']}, skipped {result['skipped']}")
    return 0

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--restaurant-id", required=True,
                        help="restaurant that receives items with no recoverable owner")
    parser.add_argument("--apply", action="store_true", help="write the planned changes")
    parser.add_argument("--actor", default=None, help="email recorded in the audit log")
    args = parser.parse_args(argv)
    try:
        return asyncio.run(run(args.restaurant_id, args.apply, args.actor))
    finally:
        mongo_conn.close()

if __name__ == "__main__":
    raise SystemExit(main())
