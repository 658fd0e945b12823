import pytest
from bson import ObjectId

from core.exceptions import NotFound, ValidationFailed
from scripts.repair_menu_items import run
from services.repair_service import apply_menu_item_repairs, classify_reference, plan_menu_item_repairs
from conftest import make_user, make_restaurant


@pytest.fixture
def kitchen(raw_db):
    """Two restaurants plus one menu item for every kind of broken reference."""
    first_owner = make_user(raw_db, role="restaurant")
    second_owner = make_user(raw_db, role="restaurant")
    target = make_restaurant(raw_db, first_owner, name="Momo House")
    other = make_restaurant(raw_db, second_owner, name="Thakali Kitchen")

    items = raw_db.menu_items
    ok = items.seed({"item_name": "Chicken Momo", "restaurant": target["_id"]})
    missing = items.seed({"item_name": "Veg Momo"})
    nulled = items.seed({"item_name": "Jhol Momo", "restaurant": None})
    self_id = ObjectId()
    items.seed({"_id": self_id, "item_name": "Sel Roti", "restaurant": self_id})
    by_owner = items.seed({"item_name": "Dal Bhat", "restaurant": second_owner["_id"]})
    dangling = items.seed({"item_name": "Gundruk", "restaurant": ObjectId()})
    return {
        "target": target, "other": other,
        "ok": ok, "missing": missing, "nulled": nulled, "self": self_id,
        "by_owner": by_owner, "dangling": dangling,
    }


def test_classify_reference():
    rid, owner_id, item_id = ObjectId(), ObjectId(), ObjectId()
    restaurants = {rid}
    owners = {owner_id: rid}
    assert classify_reference({"_id": item_id, "restaurant": rid}, restaurants, owners) is None
    assert classify_reference({"_id": item_id}, restaurants, owners) == ("missing", None)
    assert classify_reference({"_id": item_id, "restaurant": item_id}, restaurants, owners) == ("self_reference", None)
    assert classify_reference({"_id": item_id, "restaurant": owner_id}, restaurants, owners) == ("owner_reference", rid)
    assert classify_reference({"_id": item_id, "restaurant": ObjectId()}, restaurants, owners) == ("dangling", None)


async def test_plan_classifies_every_broken_reference(raw_db, kitchen):
    plan = await plan_menu_item_repairs(str(kitchen["target"]["_id"]))

    assert plan["scanned"] == 6
    by_item = {r["item_id"]: r for r in plan["repairs"]}
    assert str(kitchen["ok"]) not in by_item
    assert by_item[str(kitchen["missing"])]["reason"] == "missing"
    assert by_item[str(kitchen["nulled"])]["reason"] == "missing"
    assert by_item[str(kitchen["self"])]["reason"] == "self_reference"
    assert by_item[str(kitchen["dangling"])]["reason"] == "dangling"

    owner_fix = by_item[str(kitchen["by_owner"])]
    assert owner_fix["reason"] == "owner_reference"
    assert owner_fix["new_restaurant"] == str(kitchen["other"]["_id"])

    target = str(kitchen["target"]["_id"])
    for key in ("missing", "nulled", "self", "dangling"):
        assert by_item[str(kitchen[key])]["new_restaurant"] == target


async def test_planning_writes_nothing(raw_db, kitchen):
    before = raw_db.menu_items.all()
    await plan_menu_item_repairs(str(kitchen["target"]["_id"]))
    assert raw_db.menu_items.all() == before
    assert raw_db.audit_logs.all() == []


async def test_apply_rewrites_references_and_is_idempotent(raw_db, kitchen):
    target_id = str(kitchen["target"]["_id"])
    plan = await plan_menu_item_repairs(target_id)
    result = await apply_menu_item_repairs(plan, actor_email="ops@yumrun.com")

    assert result == {"planned": 5, "applied": 5, "skipped": 0}
    restaurant_of = {d["_id"]: d["restaurant"] for d in raw_db.menu_items.all()}
    assert restaurant_of[kitchen["missing"]] == kitchen["target"]["_id"]
    assert restaurant_of[kitchen["self"]] == kitchen["target"]["_id"]
    assert restaurant_of[kitchen["by_owner"]] == kitchen["other"]["_id"]
    assert restaurant_of[kitchen["ok"]] == kitchen["target"]["_id"]

    audit = raw_db.audit_logs.all()
    assert audit[0]["action"] == "repair_menu_item_references"
    assert audit[0]["actor_email"] == "ops@yumrun.com"

    replan = await plan_menu_item_repairs(target_id)
    assert replan["repairs"] == []


async def test_apply_skips_items_changed_since_planning(raw_db, kitchen):
    plan = await plan_menu_item_repairs(str(kitchen["target"]["_id"]))
    await raw_db.menu_items.update_one(
        {"_id": kitchen["dangling"]}, {"$set": {"restaurant": kitchen["other"]["_id"]}}
    )

    result = await apply_menu_item_repairs(plan)

    assert result["skipped"] == 1
    assert result["applied"] == 4
    assert raw_db.menu_items.all({"_id": kitchen["dangling"]})[0]["restaurant"] == kitchen["other"]["_id"]


async def test_target_must_exist(raw_db, kitchen):
    with pytest.raises(NotFound):
        await plan_menu_item_repairs(str(ObjectId()))
    with pytest.raises(ValidationFailed):
        await plan_menu_item_repairs("not-an-id")


async def test_deleted_restaurant_is_not_a_target(raw_db):
    owner = make_user(raw_db, role="restaurant")
    gone = make_restaurant(raw_db, owner, deleted=True)
    with pytest.raises(NotFound):
        await plan_menu_item_repairs(str(gone["_id"]))


async def test_cli_defaults_to_dry_run(raw_db, kitchen, capsys):
    code = await run(str(kitchen["target"]["_id"]), apply=False, actor=None)

    assert code == 0
    out = capsys.readouterr().out
    assert "5 need repair" in out
    assert "Dry run" in out
    assert raw_db.menu_items.all({"_id": kitchen["missing"]})[0].get("restaurant") is None


async def test_cli_apply_and_missing_target(raw_db, kitchen, capsys):
    assert await run(str(kitchen["target"]["_id"]), apply=True, actor="ops@yumrun.com") == 0
    assert "Applied 5, skipped 0" in capsys.readouterr().out

    assert await run(str(ObjectId()), apply=True, actor=None) == 1
    assert "error:" in capsys.readouterr().out


def test_classify_string_reference():
    rid, item_id = ObjectId(), ObjectId()
    assert classify_reference({"_id": item_id, "restaurant": str(rid)}, {rid}, {}) == ("string_reference", rid)
    assert classify_reference({"_id": item_id, "restaurant": str(item_id)}, {rid}, {}) == ("self_reference", None)
    assert classify_reference({"_id": item_id, "restaurant": "legacy"}, {rid}, {}) == ("dangling", None)


async def test_string_reference_keeps_its_own_restaurant(raw_db):
    target = make_restaurant(raw_db, make_user(raw_db, role="restaurant"), name="Momo House")
    other = make_restaurant(raw_db, make_user(raw_db, role="restaurant"), name="Thakali Kitchen")
    item = raw_db.menu_items.seed({"item_name": "Dhido", "restaurant": str(other["_id"])})

    plan = await plan_menu_item_repairs(str(target["_id"]))
    assert [(r["reason"], r["old_restaurant"], r["new_restaurant"]) for r in plan["repairs"]] == [
        ("string_reference", str(other["_id"]), str(other["_id"]))
    ]

    result = await apply_menu_item_repairs(plan)
    assert result == {"planned": 1, "applied": 1, "skipped": 0}
    assert raw_db.menu_items.all({"_id": item})[0]["restaurant"] == other["_id"]

    replan = await plan_menu_item_repairs(str(target["_id"]))
    assert replan["repairs"] == []


async def test_string_owner_reference_is_remapped(raw_db):
    target = make_restaurant(raw_db, make_user(raw_db, role="restaurant"))
    owner = make_user(raw_db, role="restaurant")
    theirs = make_restaurant(raw_db, owner, name="Newa Bhoj")
    item = raw_db.menu_items.seed({"item_name": "Bara", "restaurant": str(owner["_id"])})

    plan = await plan_menu_item_repairs(str(target["_id"]))
    assert plan["repairs"][0]["reason"] == "owner_reference"
    await apply_menu_item_repairs(plan)
    assert raw_db.menu_items.all({"_id": item})[0]["restaurant"] == theirs["_id"]


async def test_restaurant_without_deleted_flag_is_live(raw_db):
    target = make_restaurant(raw_db, make_user(raw_db, role="restaurant"))
    raw_db.restaurants.docs[0].pop("deleted")
    raw_db.menu_items.seed({"item_name": "Chatamari", "restaurant": target["_id"]})

    plan = await plan_menu_item_repairs(str(target["_id"]))
    assert plan["repairs"] == []
