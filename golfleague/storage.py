"""JSON-file storage for league documents.

Each collection is one JSON document in the data directory (users.json,
seasons.json, registrations.json, rounds.json, points.json), validated with
its pydantic file schema on every load. Every read-modify-write runs under an
exclusive ``fcntl.flock`` on ``.league.lock`` in the data directory, so
``atomic_update_round`` and ``update_seasons`` are one transaction each even
when several CLI processes share the directory. A store that cannot take the
lock within ``lock_timeout`` seconds raises TransactionConflictError, which
the service retries.
"""

import fcntl
import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from .constants import COLLECTION_FILES, LOCK_FILE, LOCK_POLL_SECONDS, LOCK_TIMEOUT_SECONDS
from .exceptions import RoundNotFoundError, TransactionConflictError
from .models import Points, Registration, Round, Season, UserProfile
from .schemas import (
    PointsDoc,
    PointsFile,
    RegistrationDoc,
    RegistrationsFile,
    RoundDoc,
    RoundsFile,
    SeasonDoc,
    SeasonsFile,
    UserDoc,
    UsersFile,
)
from .utils import load_json_safe, save_json

logger = logging.getLogger('golfleague.storage')


class JsonLeagueStore:
    """
    League storage backed by JSON files.

    Implements the identity, authorization, round, registration, season and
    points collaborator interfaces.
    """

    def __init__(self, data_dir: str | Path, lock_timeout: float = LOCK_TIMEOUT_SECONDS):
        """
        Initialize store.

        Args:
            data_dir: Directory holding the collection files (created on first write)
            lock_timeout: Seconds to wait for the data directory lock
        """
        self.data_dir = Path(data_dir)
        self.lock_timeout = lock_timeout
        self._lock = threading.RLock()
        self._depth = 0

    def _path(self, collection: str) -> Path:
        return self.data_dir / COLLECTION_FILES[collection]

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """
        Hold the data directory lock for one transaction.

        Re-entrant within a thread: nested calls share the outer flock, since a
        second flock on a new descriptor would block on the first.
        """
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(self.data_dir / LOCK_FILE, 'a+') as handle:
                deadline = time.monotonic() + self.lock_timeout
                while True:
                    try:
                        fcntl.flock(handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
                        break
                    except BlockingIOError:
                        if time.monotonic() >= deadline:
                            logger.warning(f'Timed out after {self.lock_timeout}s waiting for {handle.name}')
                            raise TransactionConflictError(
                                f'{self.data_dir} is locked by another writer'
                            ) from None
                        time.sleep(LOCK_POLL_SECONDS)
                self._depth = 1
                try:
                    yield
                finally:
                    self._depth = 0
                    fcntl.flock(handle, fcntl.LOCK_UN)

    def _load(self, collection: str, schema):
        return load_json_safe(self._path(collection), default=schema(), schema=schema)

    def _save(self, collection: str, document) -> None:
        save_json(self._path(collection), document)

    # Users

    def get_user(self, user_id: str) -> UserProfile | None:
        for doc in self._load('users', UsersFile).users:
            if doc.id == user_id:
                return doc.to_model()
        return None

    def list_users(self) -> list[UserProfile]:
        users = [doc.to_model() for doc in self._load('users', UsersFile).users]
        return sorted(users, key=lambda u: (u.display_name, u.id))

    def save_user(self, user: UserProfile) -> None:
        with self._locked():
            document = self._load('users', UsersFile)
            document.users = [d for d in document.users if d.id != user.id]
            document.users.append(UserDoc.from_model(user))
            self._save('users', document)

    def is_admin(self, user_id: str) -> bool:
        user = self.get_user(user_id)
        return bool(user and user.is_admin)

    # Seasons

    def load_seasons(self) -> list[Season]:
        seasons = [doc.to_model() for doc in self._load('seasons', SeasonsFile).seasons]
        return sorted(seasons, key=lambda s: (-s.year, s.id))

    def save_season(self, season: Season) -> None:
        with self._locked():
            document = self._load('seasons', SeasonsFile)
            docs = [d for d in document.seasons if d.id != season.id]
            docs.append(SeasonDoc.from_model(season))
            document.seasons = docs
            self._save('seasons', document)

    def update_seasons(
        self, transform: Callable[[list[Season]], list[Season]]
    ) -> list[Season]:
        with self._locked():
            seasons = self.load_seasons()
            updated = transform(seasons)
            self._save('seasons', SeasonsFile(seasons=[SeasonDoc.from_model(s) for s in updated]))
            logger.debug(f'Updated {len(updated)} seasons in one write')
            return updated

    # Registrations

    def load_registrations(self, season_id: str) -> list[Registration]:
        return [
            doc.to_model()
            for doc in self._load('registrations', RegistrationsFile).registrations
            if doc.season_id == season_id
        ]

    def get_registration(self, registration_id: str) -> Registration | None:
        for doc in self._load('registrations', RegistrationsFile).registrations:
            if doc.id == registration_id:
                return doc.to_model()
        return None

    def save_registration(self, registration: Registration) -> None:
        with self._locked():
            document = self._load('registrations', RegistrationsFile)
            docs = [d for d in document.registrations if d.id != registration.id]
            docs.append(RegistrationDoc.from_model(registration))
            document.registrations = docs
            self._save('registrations', document)

    # Rounds

    def get_round(self, round_id: str) -> Round | None:
        for doc in self._load('rounds', RoundsFile).rounds:
            if doc.id == round_id:
                return doc.to_model()
        return None

    def load_rounds_by_scope(self, season_id: str, month: str | None = None) -> list[Round]:
        """Rounds of a season (optionally one month), oldest submission first."""
        rounds = [
            doc.to_model()
            for doc in self._load('rounds', RoundsFile).rounds
            if doc.season_id == season_id and (month is None or doc.month == month)
        ]
        return sorted(rounds, key=lambda r: (r.submitted_at, r.id))

    def load_player_rounds(self, player_id: str) -> list[Round]:
        """A player's rounds, newest submission first."""
        rounds = [
            doc.to_model()
            for doc in self._load('rounds', RoundsFile).rounds
            if doc.player_id == player_id
        ]
        return sorted(rounds, key=lambda r: (r.submitted_at, r.id), reverse=True)

    def add_round(self, round_: Round) -> None:
        with self._locked():
            document = self._load('rounds', RoundsFile)
            if any(d.id == round_.id for d in document.rounds):
                raise ValueError(f'Round already exists: {round_.id}')
            document.rounds.append(RoundDoc.from_model(round_))
            self._save('rounds', document)

    def atomic_update_round(self, round_id: str, transform: Callable[[Round], Round]) -> Round:
        with self._locked():
            document = self._load('rounds', RoundsFile)
            for index, doc in enumerate(document.rounds):
                if doc.id == round_id:
                    break
            else:
                raise RoundNotFoundError(round_id)

            updated = transform(doc.to_model())
            if updated.id != round_id:
                raise ValueError(f'Transform changed round id {round_id} -> {updated.id}')
            document.rounds[index] = RoundDoc.from_model(updated)
            self._save('rounds', document)
            return updated

    # Points

    def load_points(self, season_id: str) -> list[Points]:
        return [
            doc.to_model()
            for doc in self._load('points', PointsFile).points
            if doc.season_id == season_id
        ]

    def replace_month_points(
        self,
        season_id: str,
        month: str,
        points: list[Points],
        refreshed: list[Points] | tuple[Points, ...] = (),
    ) -> None:
        """
        Overwrite one month's Points in a single write.

        Entries in refreshed (other months whose cumulative totals changed) are
        upserted by (player, season, month) in the same write.
        """
        with self._locked():
            document = self._load('points', PointsFile)
            replaced = {(p.player_id, p.season_id, p.month) for p in refreshed}
            kept = [
                d for d in document.points
                if not (d.season_id == season_id and d.month == month)
                and (d.player_id, d.season_id, d.month) not in replaced
            ]
            document.points = kept + [PointsDoc.from_model(p) for p in list(points) + list(refreshed)]
            self._save('points', document)
