"""
Tests for pickup codes: the QR codec and the code/scan endpoints.
"""

import json

import pytest

from icondo.app.core.exceptions import PickupCodeError
from icondo.app.services import pickup_code

from conftest import auth, create_parcel

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.mark.asyncio
async def test_payload_decodes_to_parcel_id():
    payload = pickup_code.decode(pickup_code.encode_payload(42))
    assert payload.parcel_id == 42
    assert payload.purpose == "parcel_collection"


@pytest.mark.asyncio
async def test_payload_wire_format():
    assert json.loads(pickup_code.encode_payload(7)) == {"parcel_id": 7, "type": "parcel_collection"}


@pytest.mark.asyncio
async def test_encode_returns_png():
    assert pickup_code.encode(7).startswith(PNG_SIGNATURE)


@pytest.mark.asyncio
async def test_decode_accepts_digit_string_id():
    assert pickup_code.decode('{"parcel_id": "15", "type": "parcel_collection"}').parcel_id == 15


@pytest.mark.parametrize("scanned", [
    "hello",
    "",
    "[1, 2]",
    '{"parcel_id": 1}',
    '{"parcel_id": 1, "type": "visitor_pass"}',
    '{"type": "parcel_collection"}',
    '{"parcel_id": true, "type": "parcel_collection"}',
    '{"parcel_id": -3, "type": "parcel_collection"}',
    '{"parcel_id": 0, "type": "parcel_collection"}',
    '{"parcel_id": 1.5, "type": "parcel_collection"}',
    '{"parcel_id": "abc", "type": "parcel_collection"}',
    '{"parcel_id": "\u00b2", "type": "parcel_collection"}',
    '{"parcel_id": "\u0663", "type": "parcel_collection"}',
    '{"parcel_id": 2147483648, "type": "parcel_collection"}',
    '{"parcel_id": "99999999999999999999", "type": "parcel_collection"}',
])
@pytest.mark.asyncio
async def test_decode_rejects_foreign_codes(scanned):
    with pytest.raises(PickupCodeError):
        pickup_code.decode(scanned)


@pytest.mark.asyncio
async def test_owner_gets_pickup_code(client, staff_token, resident_101):
    _, token = resident_101
    parcel_id = (await create_parcel(client, staff_token, "TH1", room_number="101")).json()["id"]

    response = await client.get(f"/v1/parcels/{parcel_id}/qrcode", headers=auth(token))

    assert response.status_code == 200
    data = response.json()
    assert data["parcel_id"] == parcel_id
    assert data["qr_code"].startswith("data:image/png;base64,")
    assert pickup_code.decode(data["payload"]).parcel_id == parcel_id


@pytest.mark.asyncio
async def test_pickup_code_png(client, staff_token, resident_101):
    _, token = resident_101
    parcel_id = (await create_parcel(client, staff_token, "TH1", room_number="101")).json()["id"]

    response = await client.get(f"/v1/parcels/{parcel_id}/qrcode.png", headers=auth(token))

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(PNG_SIGNATURE)


@pytest.mark.asyncio
async def test_pickup_code_only_for_owner(client, staff_token, resident_101, resident_102):
    _, other_token = resident_102
    parcel_id = (await create_parcel(client, staff_token, "TH1", room_number="101")).json()["id"]

    as_other = await client.get(f"/v1/parcels/{parcel_id}/qrcode", headers=auth(other_token))
    as_staff = await client.get(f"/v1/parcels/{parcel_id}/qrcode", headers=auth(staff_token))

    assert as_other.status_code == 403
    assert as_staff.status_code == 403


@pytest.mark.asyncio
async def test_pickup_code_refused_after_collection(client, staff_token, resident_101):
    _, token = resident_101
    parcel_id = (await create_parcel(client, staff_token, "TH1", room_number="101")).json()["id"]
    await client.put(f"/v1/parcels/{parcel_id}/collect", headers=auth(staff_token))

    response = await client.get(f"/v1/parcels/{parcel_id}/qrcode", headers=auth(token))
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_pickup_code_missing_parcel(client, resident_101):
    _, token = resident_101
    response = await client.get("/v1/parcels/9999/qrcode", headers=auth(token))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_scan_then_collect(client, staff_token, resident_101):
    """The desk flow: resident shows the code, staff scan it, then confirm handoff."""
    _, token = resident_101
    parcel_id = (await create_parcel(client, staff_token, "TH1", room_number="101")).json()["id"]
    code = (await client.get(f"/v1/parcels/{parcel_id}/qrcode", headers=auth(token))).json()["payload"]

    scan = await client.post("/v1/parcels/scan", json={"code": code}, headers=auth(staff_token))

    assert scan.status_code == 200
    data = scan.json()
    assert data["parcel_id"] == parcel_id
    assert data["purpose"] == "parcel_collection"
    assert data["parcel"]["status"] == "pending"
    assert data["parcel"]["room_number"] == "101"

    collect = await client.put(f"/v1/parcels/{parcel_id}/collect", headers=auth(staff_token))
    assert collect.status_code == 200


@pytest.mark.asyncio
async def test_scan_rejects_invalid_code(client, staff_token):
    response = await client.post("/v1/parcels/scan", json={"code": "not json"}, headers=auth(staff_token))

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_PICKUP_CODE"


@pytest.mark.asyncio
async def test_scan_unknown_parcel(client, staff_token):
    response = await client.post(
        "/v1/parcels/scan", json={"code": pickup_code.encode_payload(9999)}, headers=auth(staff_token)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_resident_cannot_scan(client, resident_101):
    _, token = resident_101
    response = await client.post(
        "/v1/parcels/scan", json={"code": pickup_code.encode_payload(1)}, headers=auth(token)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_scan_rejects_unicode_digit_id(client, staff_token):
    response = await client.post(
        "/v1/parcels/scan",
        json={"code": '{"parcel_id": "²", "type": "parcel_collection"}'},
        headers=auth(staff_token),
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_PICKUP_CODE"


@pytest.mark.asyncio
async def test_scan_rejects_out_of_range_id(client, staff_token):
    response = await client.post(
        "/v1/parcels/scan",
        json={"code": '{"parcel_id": 99999999999999999999, "type": "parcel_collection"}'},
        headers=auth(staff_token),
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_PICKUP_CODE"


@pytest.mark.asyncio
async def test_decode_accepts_largest_id():
    assert pickup_code.decode(pickup_code.encode_payload(2147483647)).parcel_id == 2147483647


@pytest.mark.asyncio
async def test_pickup_code_out_of_range_id(client, resident_101):
    _, token = resident_101
    response = await client.get("/v1/parcels/99999999999999999999/qrcode", headers=auth(token))
    assert response.status_code == 422
