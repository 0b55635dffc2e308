"""Tests for estate utility accounts."""

import uuid

import pytest

from legatepro.db.enums import EstateEventType
from legatepro.db.models import EstateEvent, EstateProperty, UtilityAccount
from tests.conftest import estate_url


@pytest.fixture
def house(db, estate) -> EstateProperty:
    prop = EstateProperty(estate_id=estate.id, label="Main St house")
    db.add(prop)
    db.commit()
    return prop


async def _add(c, estate, **fields):
    payload = {"provider_name": "DTE Energy", "utility_type": "electric", **fields}
    response = await c.post(estate_url(estate, "/utilities"), json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_utility_crud_logs_activity(client_for, estate, editor, house, db):
    async with client_for(editor) as c:
        created = await _add(
            c,
            estate,
            property_id=str(house.id),
            account_number="ACCT-1001",
            balance_due_cents="8450",
            website="https://dteenergy.com",
        )
        patched = await c.patch(
            estate_url(estate, f"/utilities/{created['id']}"),
            json={
                "balance_due_cents": 0,
                "last_payment_cents": 8450,
                "last_payment_date": "2024-05-01",
            },
        )
        unchanged = await c.patch(
            estate_url(estate, f"/utilities/{created['id']}"), json={"provider_name": "DTE Energy"}
        )
        deleted = await c.delete(estate_url(estate, f"/utilities/{created['id']}"))
        missing = await c.get(estate_url(estate, f"/utilities/{created['id']}"))

    assert created["utility_type"] == "electric"
    assert created["balance_due_cents"] == 8450
    assert created["owner_id"] == str(editor.id)
    assert patched.status_code == 200
    assert patched.json()["data"]["last_payment_cents"] == 8450
    assert unchanged.status_code == 200
    assert deleted.json()["data"]["deleted"] is True
    assert missing.status_code == 404

    events = db.query(EstateEvent).filter(EstateEvent.estate_id == estate.id).all()
    types = [e.type for e in events]
    assert types.count(EstateEventType.UTILITY_CREATED.value) == 1
    assert types.count(EstateEventType.UTILITY_UPDATED.value) == 1
    assert types.count(EstateEventType.UTILITY_DELETED.value) == 1
    updated = next(e for e in events if e.type == EstateEventType.UTILITY_UPDATED.value)
    assert set(updated.meta["changed_fields"]) == {
        "balance_due_cents",
        "last_payment_cents",
        "last_payment_date",
    }


@pytest.mark.asyncio
async def test_utility_list_filters(client_for, estate, editor, viewer, house):
    async with client_for(editor) as c:
        await _add(c, estate, provider_name="Consumers Gas", utility_type="GAS")
        await _add(
            c, estate, provider_name="City Water", utility_type="water", property_id=str(house.id)
        )
        await _add(
            c, estate, provider_name="Comcast", utility_type="internet", notes="Cancel after sale"
        )

    async with client_for(viewer) as c:
        everything = await c.get(estate_url(estate, "/utilities"))
        gas = await c.get(estate_url(estate, "/utilities"), params={"type": "gas"})
        search = await c.get(estate_url(estate, "/utilities"), params={"q": "cancel"})
        at_house = await c.get(
            estate_url(estate, "/utilities"), params={"property_id": str(house.id)}
        )
        nested = await c.get(estate_url(estate, f"/properties/{house.id}/utilities"))
        bad_type = await c.get(estate_url(estate, "/utilities"), params={"type": "steam"})

    assert [u["provider_name"] for u in everything.json()["data"]] == [
        "City Water",
        "Comcast",
        "Consumers Gas",
    ]
    assert [u["provider_name"] for u in gas.json()["data"]] == ["Consumers Gas"]
    assert [u["provider_name"] for u in search.json()["data"]] == ["Comcast"]
    assert [u["provider_name"] for u in at_house.json()["data"]] == ["City Water"]
    assert nested.json()["data"] == at_house.json()["data"]
    assert bad_type.status_code == 400


@pytest.mark.asyncio
async def test_property_utilities_requires_estate_property(
    client_for, estate, editor, other_estate, db
):
    foreign = EstateProperty(estate_id=other_estate.id, label="Cabin")
    db.add(foreign)
    db.commit()

    async with client_for(editor) as c:
        response = await c.get(estate_url(estate, f"/properties/{foreign.id}/utilities"))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_utility_property_must_stay_in_estate(
    client_for, estate, editor, other_estate, house, db
):
    foreign = EstateProperty(estate_id=other_estate.id, label="Cabin")
    db.add(foreign)
    db.commit()

    async with client_for(editor) as c:
        foreign_create = await c.post(
            estate_url(estate, "/utilities"),
            json={"provider_name": "DTE Energy", "property_id": str(foreign.id)},
        )
        unknown_create = await c.post(
            estate_url(estate, "/utilities"),
            json={"provider_name": "DTE Energy", "property_id": str(uuid.uuid4())},
        )
        created = await _add(c, estate, property_id=str(house.id))
        foreign_patch = await c.patch(
            estate_url(estate, f"/utilities/{created['id']}"),
            json={"property_id": str(foreign.id)},
        )

    assert foreign_create.status_code == 400
    assert foreign_create.json()["error"] == "Property does not belong to this estate"
    assert unknown_create.status_code == 400
    assert foreign_patch.status_code == 400
    db.expire_all()
    assert db.query(UtilityAccount).count() == 1
    assert db.query(UtilityAccount).one().property_id == house.id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields",
    [
        {"website": "javascript:alert(1)"},
        {"balance_due_cents": -5},
        {"balance_due_cents": 10.5},
        {"provider_name": "   "},
    ],
)
async def test_utility_rejects_bad_fields(client_for, estate, editor, fields):
    async with client_for(editor) as c:
        response = await c.post(
            estate_url(estate, "/utilities"), json={"provider_name": "DTE Energy", **fields}
        )
    assert response.status_code == 400
    assert response.json()["ok"] is False


@pytest.mark.asyncio
async def test_utility_writes_need_editor(client_for, estate, editor, viewer, outsider):
    async with client_for(editor) as c:
        created = await _add(c, estate)

    async with client_for(viewer) as c:
        listed = await c.get(estate_url(estate, "/utilities"))
        create = await c.post(estate_url(estate, "/utilities"), json={"provider_name": "Gas Co"})
        delete = await c.delete(estate_url(estate, f"/utilities/{created['id']}"))

    async with client_for(outsider) as c:
        hidden = await c.get(estate_url(estate, "/utilities"))

    assert listed.status_code == 200
    assert create.status_code == 403
    assert delete.status_code == 403
    assert hidden.status_code == 404


@pytest.mark.asyncio
async def test_deleting_property_detaches_utilities(client_for, estate, editor, house):
    async with client_for(editor) as c:
        created = await _add(c, estate, property_id=str(house.id))
        deleted = await c.delete(estate_url(estate, f"/properties/{house.id}"))
        utility = await c.get(estate_url(estate, f"/utilities/{created['id']}"))

    assert deleted.status_code == 200
    assert utility.status_code == 200
    assert utility.json()["data"]["property_id"] is None
