from datetime import datetime, timedelta

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.user import User
from security.password import hash_password
from services.bookings import BookingService
from services.memory import InMemoryActorDirectory, InMemoryBookingRepository
from services.notifications import BookingNotifier, NotificationDispatcher
from services.repository import Actor
from utils.clock import utcnow

PASSWORD = "secret123"


class RecordingNotifier(BookingNotifier):
    def __init__(self):
        self.calls = []

    def notify_reader_new_booking(self, booking):
        self.calls.append(("new", booking.id))

    def notify_customer_confirmed(self, booking):
        self.calls.append(("confirmed", booking.id))

    def notify_customer_rejected(self, booking):
        self.calls.append(("rejected", booking.id))

    def notify_counterparty_cancelled(self, booking, cancelled_by):
        self.calls.append(("cancelled", booking.id, cancelled_by))


class FailingNotifier(BookingNotifier):
    def _boom(self, *args):
        raise RuntimeError("smtp down")

    notify_reader_new_booking = _boom
    notify_customer_confirmed = _boom
    notify_customer_rejected = _boom
    notify_counterparty_cancelled = _boom


class FakeClock:
    def __init__(self, now=datetime(2026, 3, 1, 12, 0, 0)):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


# ---------- service-level fixtures (in-memory) ----------

@pytest.fixture
def actors():
    return {
        "user1": Actor(id=1, role="user", display_name="user1", email="user1@example.com"),
        "user2": Actor(id=2, role="user", display_name="user2", email="user2@example.com"),
        "reader1": Actor(id=10, role="render", display_name="reader1", email="r1@example.com", phone="+84900000010"),
        "reader2": Actor(id=11, role="render", display_name="reader2"),
        "admin": Actor(id=99, role="admin", display_name="admin"),
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(actors, clock, notifier):
    directory = InMemoryActorDirectory(actors.values())
    repo = InMemoryBookingRepository(directory)
    return BookingService(repo, directory, notifier, NotificationDispatcher(run_async=False), clock=clock)


# ---------- HTTP fixtures (Flask + SQLite in memory) ----------

@pytest.fixture
def app_notifier():
    return RecordingNotifier()


@pytest.fixture
def app(app_notifier):
    app = create_app(TestConfig, notifier=app_notifier)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(username, role="user", phone=None):
        user = User(
            email=f"{username}@example.com",
            username=username,
            password_hash=hash_password(PASSWORD),
            role=role,
            phone=phone,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def login(client):
    def _login(user):
        resp = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['token']}"}
    return _login


@pytest.fixture
def tomorrow():
    return (utcnow() + timedelta(days=1)).replace(microsecond=0).isoformat() + "Z"
