"""
tests/booking/test_booking_flow.py

End-to-end booking tests against the in-memory database.
Requests carry real tokens; push and email go to in-memory fakes.
"""

from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone
from uuid import uuid4

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import (
    BookingFactory,
    FailingMailer,
    FakeMailer,
    FakeTransport,
    ProviderFactory,
    UserFactory,
)
from sosauto.booking.models import Booking
from sosauto.core.config import settings
from sosauto.database.enums import BookingStatus, UserRole
from sosauto.database.models import User
from sosauto.notification.dispatcher import NotificationDispatcher
from sosauto.notification.models import Notification

HeadersFactory = Callable[[User], dict[str, str]]


def _booking_payload(provider_id: object, days: int = 3, issue: str = "Engine won't start") -> dict[str, str]:
    when = datetime.combine(date.today() + timedelta(days=days), time(10, 0))
    return {"providerId": str(provider_id), "date": when.isoformat(), "issue": issue}


async def _notifications_for(db: AsyncSession, user: User) -> list[Notification]:
    result = await db.execute(select(Notification).filter(Notification.user_id == user.id))
    return list(result.scalars().all())


# ---------------------------------------------------
# Creation
# ---------------------------------------------------
@pytest.mark.asyncio
async def test_create_booking_notifies_provider_owner(
    live_app: NotificationDispatcher,
    fake_transport: FakeTransport,
    fake_mailer: FakeMailer,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT, name="Yacine Benali")
    owner = await make_user(UserRole.MECHANIC)
    provider = await make_provider(owner, name="Garage Ennour", phone="0661000000")

    response = await async_client.post(
        "/bookings", json=_booking_payload(provider.id), headers=auth_headers(client)
    )
    await live_app.drain()

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["providerName"] == "Garage Ennour"
    assert data["providerPhone"] == "0661000000"
    assert data["clientName"] == "Yacine Benali"
    assert data["clientPhone"] == client.phone

    stored = await _notifications_for(db_session, owner)
    assert len(stored) == 1
    assert stored[0].title == "New Booking Request"
    assert stored[0].message.startswith("Yacine Benali has requested a booking for ")
    assert stored[0].is_read is False

    assert len(fake_transport.emitted) == 1
    pushed_to, frame = fake_transport.emitted[0]
    assert pushed_to == owner.id
    assert frame["event"] == "notification"
    assert frame["data"]["id"] == str(stored[0].id)

    assert [m.to for m in fake_mailer.sent] == [owner.email]
    assert fake_mailer.sent[0].subject == f"New Booking Request - {settings.APP_NAME}"


@pytest.mark.asyncio
async def test_create_booking_survives_email_failure(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    failing = FailingMailer()
    live_app.mailer = failing
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.TOWING)
    provider = await make_provider(owner)

    response = await async_client.post(
        "/bookings", json=_booking_payload(provider.id), headers=auth_headers(client)
    )
    await live_app.drain()

    assert response.status_code == status.HTTP_201_CREATED
    assert failing.attempts == 1
    assert len(await _notifications_for(db_session, owner)) == 1
    count = (await db_session.execute(select(func.count(Booking.id)))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_create_booking_unknown_provider_writes_nothing(
    live_app: NotificationDispatcher,
    fake_transport: FakeTransport,
    make_user: UserFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)

    response = await async_client.post(
        "/bookings",
        json=_booking_payload("2b1c3f0e-5d0a-4c71-9e55-3f1f0c6a7d10"),
        headers=auth_headers(client),
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Provider not found"
    assert (await db_session.execute(select(func.count(Booking.id)))).scalar_one() == 0
    assert (await db_session.execute(select(func.count(Notification.id)))).scalar_one() == 0
    assert fake_transport.emitted == []


@pytest.mark.asyncio
async def test_create_booking_rejects_invalid_token(
    live_app: NotificationDispatcher, async_client: AsyncClient
) -> None:
    response = await async_client.post(
        "/bookings",
        json=_booking_payload("2b1c3f0e-5d0a-4c71-9e55-3f1f0c6a7d10"),
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Could not validate credentials"


# ---------------------------------------------------
# Listing & Retrieval
# ---------------------------------------------------
@pytest.mark.asyncio
async def test_list_bookings_scoped_and_newest_first(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    other_client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    provider = await make_provider(owner)

    older = await make_booking(client, provider)
    newer = await make_booking(client, provider)
    foreign = await make_booking(other_client, provider)
    base = datetime.now(timezone.utc)
    older.created_at = base - timedelta(hours=2)
    newer.created_at = base - timedelta(hours=1)
    foreign.created_at = base
    await db_session.commit()

    response = await async_client.get("/bookings", headers=auth_headers(client))
    assert response.status_code == status.HTTP_200_OK
    assert [b["id"] for b in response.json()] == [str(newer.id), str(older.id)]

    response = await async_client.get("/bookings", headers=auth_headers(owner))
    assert [b["id"] for b in response.json()] == [str(foreign.id), str(newer.id), str(older.id)]


@pytest.mark.asyncio
async def test_list_bookings_for_professional_without_profile(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    auth_headers: HeadersFactory,
    async_client: AsyncClient,
) -> None:
    parts_shop = await make_user(UserRole.PARTS_SHOP)

    response = await async_client.get("/bookings", headers=auth_headers(parts_shop))

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []


@pytest.mark.asyncio
async def test_get_booking_visibility(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    stranger = await make_user(UserRole.CLIENT)
    admin = await make_user(UserRole.ADMIN)
    owner = await make_user(UserRole.MECHANIC)
    provider = await make_provider(owner)
    booking = await make_booking(client, provider)
    url = f"/bookings/{booking.id}"

    for viewer in (client, owner, admin):
        response = await async_client.get(url, headers=auth_headers(viewer))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == str(booking.id)

    response = await async_client.get(url, headers=auth_headers(stranger))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Not authorized to view this booking"


@pytest.mark.asyncio
async def test_get_unknown_booking_is_404_for_every_caller(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    async_client: AsyncClient,
) -> None:
    """A missing booking is reported as missing before any access check."""
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    admin = await make_user(UserRole.ADMIN)
    await make_booking(client, await make_provider(owner))

    for caller in (client, owner, admin):
        response = await async_client.get(f"/bookings/{uuid4()}", headers=auth_headers(caller))
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Booking not found"


# ---------------------------------------------------
# Updates
# ---------------------------------------------------
@pytest.mark.asyncio
async def test_provider_confirms_and_client_is_notified(
    live_app: NotificationDispatcher,
    fake_transport: FakeTransport,
    fake_mailer: FakeMailer,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    provider = await make_provider(owner)
    booking = await make_booking(client, provider)

    response = await async_client.put(
        f"/bookings/{booking.id}",
        json={"status": "CONFIRMED", "price": 4500},
        headers=auth_headers(owner),
    )
    await live_app.drain()

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "CONFIRMED"
    assert response.json()["price"] == 4500

    stored = await _notifications_for(db_session, client)
    assert [n.message for n in stored] == ["Booking status changed to CONFIRMED"]
    assert await _notifications_for(db_session, owner) == []
    assert [uid for uid, _ in fake_transport.emitted] == [client.id]
    assert [m.to for m in fake_mailer.sent] == [client.email]
    assert fake_mailer.sent[0].subject == f"Booking Confirmed - {settings.APP_NAME}"


@pytest.mark.asyncio
async def test_client_cancels_with_reason(
    live_app: NotificationDispatcher,
    fake_mailer: FakeMailer,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    provider = await make_provider(owner)
    booking = await make_booking(client, provider, BookingStatus.CONFIRMED)

    response = await async_client.put(
        f"/bookings/{booking.id}",
        json={"status": "CANCELLED", "cancellationReason": "Car fixed by a neighbour"},
        headers=auth_headers(client),
    )
    await live_app.drain()

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["cancellationReason"] == "Car fixed by a neighbour"

    stored = await _notifications_for(db_session, owner)
    assert [n.message for n in stored] == [
        "Booking status changed to CANCELLED: Car fixed by a neighbour"
    ]
    assert [m.to for m in fake_mailer.sent] == [owner.email]
    assert "Car fixed by a neighbour" in fake_mailer.sent[0].html


@pytest.mark.asyncio
async def test_reason_ignored_without_cancellation(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    booking = await make_booking(client, await make_provider(owner))

    response = await async_client.put(
        f"/bookings/{booking.id}",
        json={"status": "CONFIRMED", "cancellationReason": "n/a"},
        headers=auth_headers(owner),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["cancellationReason"] is None


@pytest.mark.asyncio
async def test_price_only_update_sends_nothing(
    live_app: NotificationDispatcher,
    fake_transport: FakeTransport,
    fake_mailer: FakeMailer,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    booking = await make_booking(client, await make_provider(owner))

    response = await async_client.put(
        f"/bookings/{booking.id}", json={"price": 3000}, headers=auth_headers(owner)
    )
    await live_app.drain()

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["price"] == 3000
    assert response.json()["status"] == "PENDING"
    assert (await db_session.execute(select(func.count(Notification.id)))).scalar_one() == 0
    assert fake_transport.emitted == []
    assert fake_mailer.sent == []


@pytest.mark.asyncio
async def test_pending_status_update_pushes_without_email(
    live_app: NotificationDispatcher,
    fake_transport: FakeTransport,
    fake_mailer: FakeMailer,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    booking = await make_booking(client, await make_provider(owner))

    response = await async_client.put(
        f"/bookings/{booking.id}", json={"status": "PENDING"}, headers=auth_headers(client)
    )
    await live_app.drain()

    assert response.status_code == status.HTTP_200_OK
    assert len(await _notifications_for(db_session, owner)) == 1
    assert [uid for uid, _ in fake_transport.emitted] == [owner.id]
    assert fake_mailer.sent == []


@pytest.mark.asyncio
async def test_update_forbidden_for_strangers_and_admins(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    other_owner = await make_user(UserRole.MECHANIC)
    await make_provider(other_owner)
    admin = await make_user(UserRole.ADMIN)
    booking = await make_booking(client, await make_provider(owner))

    for intruder in (other_owner, admin):
        response = await async_client.put(
            f"/bookings/{booking.id}", json={"status": "CANCELLED"}, headers=auth_headers(intruder)
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Not authorized to update this booking"

    await db_session.refresh(booking)
    assert booking.status == BookingStatus.PENDING
    assert (await db_session.execute(select(func.count(Notification.id)))).scalar_one() == 0


@pytest.mark.asyncio
async def test_update_unknown_booking(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    auth_headers: HeadersFactory,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)

    response = await async_client.put(
        "/bookings/2b1c3f0e-5d0a-4c71-9e55-3f1f0c6a7d10",
        json={"status": "CONFIRMED"},
        headers=auth_headers(client),
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Booking not found"


@pytest.mark.asyncio
async def test_permissive_mode_allows_reopening(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    booking = await make_booking(client, await make_provider(owner), BookingStatus.COMPLETED)

    response = await async_client.put(
        f"/bookings/{booking.id}", json={"status": "PENDING"}, headers=auth_headers(owner)
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "PENDING"


@pytest.mark.asyncio
async def test_reopening_cancelled_booking_clears_reason(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    booking = await make_booking(client, await make_provider(owner))
    url = f"/bookings/{booking.id}"

    cancelled = await async_client.put(
        url, json={"status": "CANCELLED", "cancellationReason": "late"}, headers=auth_headers(client)
    )
    assert cancelled.json()["cancellationReason"] == "late"

    reopened = await async_client.put(url, json={"status": "PENDING"}, headers=auth_headers(owner))
    await live_app.drain()

    assert reopened.status_code == status.HTTP_200_OK
    assert reopened.json()["status"] == "PENDING"
    assert reopened.json()["cancellationReason"] is None
    await db_session.refresh(booking)
    assert booking.cancellation_reason is None


@pytest.mark.asyncio
async def test_price_update_keeps_cancellation_reason(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    booking = await make_booking(client, await make_provider(owner))
    url = f"/bookings/{booking.id}"

    await async_client.put(
        url, json={"status": "CANCELLED", "cancellationReason": "late"}, headers=auth_headers(client)
    )
    response = await async_client.put(url, json={"price": 1500}, headers=auth_headers(owner))
    await live_app.drain()

    assert response.json()["status"] == "CANCELLED"
    assert response.json()["cancellationReason"] == "late"


@pytest.mark.asyncio
async def test_strict_mode_rejects_illegal_transition(
    monkeypatch: pytest.MonkeyPatch,
    live_app: NotificationDispatcher,
    fake_transport: FakeTransport,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    monkeypatch.setattr(settings, "BOOKING_STRICT_TRANSITIONS", True)
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    provider = await make_provider(owner)
    completed = await make_booking(client, provider, BookingStatus.COMPLETED)
    pending = await make_booking(client, provider)

    response = await async_client.put(
        f"/bookings/{completed.id}", json={"status": "CANCELLED"}, headers=auth_headers(owner)
    )
    await live_app.drain()

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Cannot change booking status from COMPLETED to CANCELLED"
    assert fake_transport.emitted == []
    await db_session.refresh(completed)
    assert completed.status == BookingStatus.COMPLETED

    response = await async_client.put(
        f"/bookings/{pending.id}", json={"status": "CONFIRMED"}, headers=auth_headers(owner)
    )
    assert response.status_code == status.HTTP_200_OK


# ---------------------------------------------------
# Deletion
# ---------------------------------------------------
@pytest.mark.asyncio
async def test_only_client_can_delete(
    live_app: NotificationDispatcher,
    make_user: UserFactory,
    make_provider: ProviderFactory,
    make_booking: BookingFactory,
    auth_headers: HeadersFactory,
    db_session: AsyncSession,
    async_client: AsyncClient,
) -> None:
    client = await make_user(UserRole.CLIENT)
    owner = await make_user(UserRole.MECHANIC)
    booking = await make_booking(client, await make_provider(owner), BookingStatus.CONFIRMED)
    booking_id = booking.id

    response = await async_client.delete(f"/bookings/{booking_id}", headers=auth_headers(owner))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Not authorized to delete this booking"

    response = await async_client.delete(f"/bookings/{booking_id}", headers=auth_headers(client))
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"detail": "Booking removed"}

    db_session.expunge_all()
    assert await db_session.get(Booking, booking_id) is None

    response = await async_client.delete(f"/bookings/{booking_id}", headers=auth_headers(client))
    assert response.status_code == status.HTTP_404_NOT_FOUND
