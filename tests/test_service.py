"""Tests for league operations against the JSON store."""

import logging
import threading
from dataclasses import replace
from unittest.mock import Mock

import pytest

from conftest import T0, at
from golfleague.exceptions import (
    DuplicateAttestationError,
    InvalidMonthError,
    InvalidRoundError,
    MissingOverrideReasonError,
    NotAuthorizedError,
    RegistrationNotFoundError,
    RoundNotFoundError,
    SeasonNotFoundError,
    SelfAttestationError,
    TransactionConflictError,
)
from golfleague.models import Registration
from golfleague.service import LeagueService
from golfleague.storage import JsonLeagueStore

SUBMISSION = {
    'course_name': 'Pebble Creek',
    'course_rating': 72.0,
    'slope_rating': 113,
    'gross_score': 90,
}


class ConflictingStore:
    """Store wrapper whose atomic update loses the first N races."""

    def __init__(self, store, conflicts):
        self._store = store
        self.conflicts = conflicts
        self.calls = 0

    def __getattr__(self, name):
        return getattr(self._store, name)

    def atomic_update_round(self, round_id, transform):
        self.calls += 1
        if self.conflicts > 0:
            self.conflicts -= 1
            # Transform runs against the stale read before the commit fails
            transform(self._store.get_round(round_id))
            raise TransactionConflictError('write conflict')
        return self._store.atomic_update_round(round_id, transform)


class TestSubmitRound:
    """Tests for round submission."""

    def test_derived_fields(self, service):
        """Test derived fields use the player's handicap at submission."""
        r = service.submit_round('alice', SUBMISSION, submitted_at=T0, round_id='r1')
        assert r.month == '2024-05'
        assert r.season_id == 's2024'
        assert r.handicap_index == 10.0
        assert r.course_handicap == 10
        assert r.net_score == 80
        assert r.differential == 18.0
        assert r.is_valid is False
        assert service.store.get_round('r1') == r

    def test_later_handicap_change_does_not_rescore(self, service, store):
        """Test changing a player's index never rewrites stored rounds."""
        service.submit_round('alice', SUBMISSION, submitted_at=T0, round_id='r1')
        store.save_user(replace(store.get_user('alice'), handicap_index=2.0))
        service.attest_round('r1', 'bob', timestamp=at(1))
        assert store.get_round('r1').net_score == 80

    @pytest.mark.parametrize('field,value', [
        ('gross_score', 40),
        ('slope_rating', 200),
        ('course_rating', 90.0),
        ('course_name', ' '),
    ])
    def test_out_of_range(self, service, field, value):
        """Test scorecard fields outside their ranges are rejected."""
        with pytest.raises(InvalidRoundError) as exc_info:
            service.submit_round('alice', {**SUBMISSION, field: value}, submitted_at=T0)
        assert any(field in e for e in exc_info.value.errors)

    def test_unknown_field(self, service):
        """Test extra fields are rejected."""
        with pytest.raises(InvalidRoundError):
            service.submit_round('alice', {**SUBMISSION, 'net_score': 60}, submitted_at=T0)

    def test_unknown_player(self, service):
        """Test rounds need a known player."""
        with pytest.raises(InvalidRoundError):
            service.submit_round('ghost', SUBMISSION, submitted_at=T0)

    def test_outside_season(self, service):
        """Test a round dated outside the season months is rejected."""
        with pytest.raises(InvalidRoundError):
            service.submit_round('alice', SUBMISSION, submitted_at=T0.replace(month=1))

    def test_no_active_season(self, service, store, season):
        """Test submitting without any active season fails."""
        store.save_season(replace(season, is_active=False))
        with pytest.raises(SeasonNotFoundError):
            service.submit_round('alice', SUBMISSION, submitted_at=T0)


class TestAttestRound:
    """Tests for attestation through the service."""

    @pytest.fixture
    def round_id(self, service):
        return service.submit_round('alice', SUBMISSION, submitted_at=T0, round_id='r1').id

    def test_two_attestations_validate(self, service, round_id):
        """Test the second attestation validates and names come from profiles."""
        first = service.attest_round(round_id, 'bob', timestamp=at(1))
        assert first.became_valid is False
        second = service.attest_round(round_id, 'carol', timestamp=at(2))
        assert second.became_valid is True
        stored = service.store.get_round(round_id)
        assert stored.is_valid is True
        assert [a.attestor_name for a in stored.attestations] == ['Bob Brown', 'Carol Chen']

    def test_unknown_attestor_gets_placeholder(self, service, round_id):
        """Test an attestor without a profile is stored under the placeholder name."""
        outcome = service.attest_round(round_id, 'guest', timestamp=at(1))
        assert outcome.round.attestations[0].attestor_name == 'Unknown'

    def test_self_attestation(self, service, round_id):
        """Test the owner cannot attest and nothing is written."""
        with pytest.raises(SelfAttestationError):
            service.attest_round(round_id, 'alice')
        assert service.store.get_round(round_id).attestation_count == 0

    def test_duplicate(self, service, round_id):
        """Test a second attestation by the same member fails."""
        service.attest_round(round_id, 'bob', timestamp=at(1))
        with pytest.raises(DuplicateAttestationError):
            service.attest_round(round_id, 'bob', timestamp=at(2))
        assert service.store.get_round(round_id).attestation_count == 1

    def test_missing_round(self, service):
        """Test attesting an unknown round fails with RoundNotFoundError."""
        with pytest.raises(RoundNotFoundError):
            service.attest_round('nope', 'bob')

    def test_can_attest(self, service, round_id):
        """Test eligibility checks without writing."""
        assert service.can_attest(round_id, 'bob') is True
        assert service.can_attest(round_id, 'alice') is False
        service.attest_round(round_id, 'bob', timestamp=at(1))
        assert service.can_attest(round_id, 'bob') is False

    def test_on_round_valid_fires_once(self, store, config, round_id):
        """Test the validity callback fires only on the crossing attestation."""
        callback = Mock()
        service = LeagueService(store, config=config, on_round_valid=callback)
        service.attest_round(round_id, 'bob', timestamp=at(1))
        service.attest_round(round_id, 'carol', timestamp=at(2))
        service.attest_round(round_id, 'dave', timestamp=at(3))
        callback.assert_called_once()
        assert callback.call_args[0][0].id == round_id

    def test_concurrent_attestations_signal_once(self, store, config, round_id):
        """Test racing attestors never double-fire the validity signal."""
        signals = []
        service = LeagueService(store, config=config, on_round_valid=signals.append)
        attestors = ['bob', 'carol', 'dave', 'erin', 'frank', 'gina']
        errors = []

        def attest(attestor_id):
            try:
                service.attest_round(round_id, attestor_id)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=attest, args=(a,)) for a in attestors]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(signals) == 1
        stored = store.get_round(round_id)
        assert stored.attestation_count == len(attestors)
        assert sorted(stored.attestor_ids) == sorted(attestors)

    def test_concurrent_same_attestor(self, service, round_id):
        """Test one attestor racing with itself succeeds exactly once."""
        results = []

        def attest():
            try:
                service.attest_round(round_id, 'bob')
                results.append('ok')
            except DuplicateAttestationError:
                results.append('duplicate')

        threads = [threading.Thread(target=attest) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count('ok') == 1
        assert results.count('duplicate') == 4
        assert service.store.get_round(round_id).attestor_ids == ['bob']


class TestTransactionRetry:
    """Tests for retrying conflicting storage transactions."""

    def test_retry_then_succeed(self, store, config):
        """Test conflicts are retried with the same transform."""
        LeagueService(store, config=config).submit_round(
            'alice', SUBMISSION, submitted_at=T0, round_id='r1'
        )
        flaky = ConflictingStore(store, conflicts=2)
        outcome = LeagueService(flaky, config=config).attest_round('r1', 'bob', timestamp=at(1))
        assert flaky.calls == 3
        assert outcome.round.attestation_count == 1
        assert store.get_round('r1').attestation_count == 1

    def test_retries_exhausted(self, store, config):
        """Test the conflict surfaces after max_transaction_retries."""
        LeagueService(store, config=config).submit_round(
            'alice', SUBMISSION, submitted_at=T0, round_id='r1'
        )
        flaky = ConflictingStore(store, conflicts=10)
        with pytest.raises(TransactionConflictError):
            LeagueService(flaky, config=config).attest_round('r1', 'bob')
        assert flaky.calls == config.max_transaction_retries + 1
        assert store.get_round('r1').attestation_count == 0

    def test_locked_data_directory_is_a_conflict(self, store, config, caplog):
        """Test another writer holding the data directory exhausts the retries."""
        caplog.set_level(logging.WARNING, logger='golfleague')
        LeagueService(store, config=config).submit_round(
            'alice', SUBMISSION, submitted_at=T0, round_id='r1'
        )
        blocked = LeagueService(JsonLeagueStore(store.data_dir, lock_timeout=0.05), config=config)

        with store._locked():
            with pytest.raises(TransactionConflictError):
                blocked.attest_round('r1', 'bob', timestamp=at(1))
        assert 'transaction conflict, retry 2' in caplog.text

        outcome = blocked.attest_round('r1', 'bob', timestamp=at(1))
        assert outcome.round.attestor_ids == ['bob']


class TestOverride:
    """Tests for admin overrides through the service."""

    @pytest.fixture
    def round_id(self, service):
        return service.submit_round('alice', SUBMISSION, submitted_at=T0, round_id='r1').id

    def test_admin_override(self, service, round_id):
        """Test an admin can validate an unattested round."""
        r = service.override_round(round_id, 'dave', True, 'Marker signed card')
        assert r.is_valid is True
        assert r.override.admin_id == 'dave'
        assert service.store.get_round(round_id).override.note == 'Marker signed card'

    def test_non_admin_rejected(self, service, round_id):
        """Test a regular member cannot override."""
        with pytest.raises(NotAuthorizedError):
            service.override_round(round_id, 'bob', True, 'Trust me')
        assert service.store.get_round(round_id).override is None

    def test_missing_note_never_reaches_storage(self, config):
        """Test an empty note is rejected before any storage call."""
        store = Mock()
        store.is_admin.return_value = True
        service = LeagueService(store, config=config)
        with pytest.raises(MissingOverrideReasonError):
            service.override_round('r1', 'dave', False, '   ')
        store.atomic_update_round.assert_not_called()

    def test_override_missing_round(self, service):
        """Test overriding an unknown round fails."""
        with pytest.raises(RoundNotFoundError):
            service.override_round('nope', 'dave', True, 'Reason')


class TestStandings:
    """Tests for points recompute and leaderboards."""

    @pytest.fixture
    def played(self, service):
        """Alice, Bob and Carol each post an attested May round."""
        scores = {'alice': 88, 'bob': 80, 'carol': 95}
        for i, (player, gross) in enumerate(scores.items()):
            service.submit_round(player, {**SUBMISSION, 'gross_score': gross},
                                 submitted_at=at(i), round_id=f'may-{player}')
            for attestor in ('dave', 'erin'):
                service.attest_round(f'may-{player}', attestor, timestamp=at(10 + i))
        return service

    def test_recompute_month_points(self, played):
        """Test points are written for every player with a valid round."""
        points = played.recompute_month_points('s2024', '2024-05')
        by_player = {p.player_id: p for p in points}
        # Gross: bob 80, alice 88, carol 95. Net: carol 75, alice 78, bob 80
        assert by_player['bob'].gross_points == 100
        assert by_player['bob'].net_points == 75
        assert by_player['carol'].net_points == 100
        assert by_player['alice'].total_monthly_points == 170
        assert by_player['alice'].cumulative_points == 170
        assert len(played.store.load_points('s2024')) == 3

    def test_recompute_is_idempotent(self, played):
        """Test recomputing twice stores the same points."""
        first = played.recompute_month_points('s2024', '2024-05')
        second = played.recompute_month_points('s2024', '2024-05')
        assert first == second
        assert len(played.store.load_points('s2024')) == 3

    def test_cumulative_across_months(self, played):
        """Test a June recompute builds on May totals."""
        played.recompute_month_points('s2024', '2024-05')
        june = at(0).replace(month=6)
        played.submit_round('bob', SUBMISSION, submitted_at=june, round_id='jun-bob')
        played.override_round('jun-bob', 'dave', True, 'Played with the pro')
        points = played.recompute_month_points('s2024', '2024-06')
        assert points[0].player_id == 'bob'
        assert points[0].total_monthly_points == 200
        assert points[0].cumulative_points == 175 + 200

    def test_invalidated_round_drops_out(self, played):
        """Test an admin-invalidated round no longer counts."""
        played.override_round('may-bob', 'dave', False, 'Wrong tees')
        points = played.recompute_month_points('s2024', '2024-05')
        assert {p.player_id for p in points} == {'alice', 'carol'}

    def test_earlier_month_refreshes_later_totals_in_one_write(self, played):
        """Test recomputing May rewrites June's running total in the same store call."""
        played.recompute_month_points('s2024', '2024-05')
        played.submit_round('bob', SUBMISSION, submitted_at=at(0).replace(month=6), round_id='jun-bob')
        played.override_round('jun-bob', 'dave', True, 'Played with the pro')
        played.recompute_month_points('s2024', '2024-06')
        played.override_round('may-bob', 'dave', False, 'Wrong tees')

        spy = Mock(wraps=played.store)
        LeagueService(spy, config=played.config).recompute_month_points('s2024', '2024-05')

        spy.replace_month_points.assert_called_once()
        june = [p for p in played.store.load_points('s2024') if p.month == '2024-06']
        assert june[0].cumulative_points == 200

    @pytest.mark.parametrize('month', ['2024-13', 'May', '2024-12', '2023-05'])
    def test_recompute_rejects_month_outside_season(self, played, month):
        """Test malformed or out-of-season months are league errors."""
        with pytest.raises(InvalidMonthError):
            played.recompute_month_points('s2024', month)
        assert played.store.load_points('s2024') == []

    def test_month_leaderboard_rejects_bad_key(self, played):
        """Test a malformed month key is rejected before any lookup."""
        with pytest.raises(InvalidMonthError):
            played.get_month_leaderboard('s2024', '2024-5')

    def test_month_leaderboard(self, played):
        """Test monthly standings and pool from registrations."""
        played.register_player('alice')
        played.register_player('bob')
        board = played.get_month_leaderboard('s2024', '2024-05')
        assert [e.player_id for e in board.gross_standings] == ['bob', 'alice', 'carol']
        assert board.prize_pool == 100

    def test_season_leaderboard(self, played):
        """Test season standings come from stored points."""
        played.recompute_month_points('s2024', '2024-05')
        board = played.get_season_leaderboard('s2024')
        assert [e.player_id for e in board.net_standings] == ['carol', 'alice', 'bob']
        assert board.gross_standings[0].rounds_played == 1

    def test_prize_pool_summary(self, played):
        """Test pools and named winners."""
        for player in ('alice', 'bob', 'carol'):
            played.register_player(player)
        reg = played.register_player('alice')
        played.mark_registration_paid('dave', 's2024', reg.id)
        played.recompute_month_points('s2024', '2024-05')

        summary = played.get_prize_pool_summary('s2024', month='2024-05')
        assert summary.registered_players == 3
        assert summary.monthly_pool == 150
        assert summary.championship_pool == 100
        assert summary.monthly_breakdown[0].winner_id == 'bob'
        assert summary.monthly_breakdown[3].winner_id == 'carol'
        assert summary.championship_breakdown[0].amount == 30


class TestSeasonAdmin:
    """Tests for season and registration administration."""

    def test_create_and_activate(self, service, season):
        """Test a new season starts inactive and activation is exclusive."""
        created = service.create_season('dave', replace(season, id='s2025', year=2025))
        assert created.is_active is False
        assert service.get_active_season().id == 's2024'

        service.activate_season('dave', 's2025')
        assert service.get_active_season().id == 's2025'
        assert [s.id for s in service.store.load_seasons() if s.is_active] == ['s2025']

    def test_create_requires_admin(self, service, season):
        """Test members cannot create seasons."""
        with pytest.raises(NotAuthorizedError):
            service.create_season('alice', replace(season, id='s2025'))

    def test_create_duplicate(self, service, season):
        """Test season ids are unique."""
        with pytest.raises(ValueError):
            service.create_season('dave', season)

    def test_activate_unknown(self, service):
        """Test activating a missing season fails and changes nothing."""
        with pytest.raises(SeasonNotFoundError):
            service.activate_season('dave', 's1999')
        assert service.get_active_season().id == 's2024'

    def test_register_is_idempotent(self, service):
        """Test registering twice returns the same registration."""
        first = service.register_player('alice')
        assert service.register_player('alice').id == first.id
        assert len(service.store.load_registrations('s2024')) == 1

    def test_payments(self, service):
        """Test admins record fees and monthly dues."""
        reg = service.register_player('alice')
        service.mark_registration_paid('dave', 's2024', reg.id)
        updated = service.mark_month_paid('dave', 's2024', reg.id, '2024-05', True)
        assert updated.has_paid_registration is True
        assert updated.monthly_payments == {'2024-05': True}
        with pytest.raises(NotAuthorizedError):
            service.mark_month_paid('alice', 's2024', reg.id, '2024-06', True)

    def test_toggle_forfeit(self, service):
        """Test toggling a forfeit updates the championship pool."""
        reg = service.register_player('bob')
        service.toggle_forfeit('dave', 's2024', reg.id, '2024-04')
        summary = service.get_prize_pool_summary('s2024')
        assert summary.total_forfeits == 50
        assert summary.championship_pool == 50

    def test_apply_forfeits(self, service):
        """Test players without a valid round forfeit each missing month."""
        service.register_player('alice')
        service.register_player('bob')
        service.submit_round('alice', SUBMISSION, submitted_at=T0.replace(month=4), round_id='a4')
        service.override_round('a4', 'dave', True, 'Witnessed')

        missing = service.apply_forfeits('dave', 's2024', '2024-05')
        assert missing == {'alice': ['2024-05'], 'bob': ['2024-04', '2024-05']}

        totals = {r.player_id: r.total_forfeited for r in service.store.load_registrations('s2024')}
        assert totals == {'alice': 50, 'bob': 100}

    def test_apply_forfeits_requires_admin(self, service):
        """Test members cannot apply forfeits."""
        with pytest.raises(NotAuthorizedError):
            service.apply_forfeits('bob', 's2024', '2024-05')

    def test_unknown_registration(self, service, store):
        """Test payment changes need a registration in the named season."""
        with pytest.raises(RegistrationNotFoundError):
            service.mark_registration_paid('dave', 's2024', 'missing')
        store.save_registration(Registration(id='old', player_id='alice', season_id='s2023'))
        with pytest.raises(RegistrationNotFoundError):
            service.mark_registration_paid('dave', 's2024', 'old')

    def test_toggle_forfeit_outside_season(self, service):
        """Test forfeits and monthly payments are limited to season months."""
        reg = service.register_player('bob')
        with pytest.raises(InvalidMonthError):
            service.toggle_forfeit('dave', 's2024', reg.id, '2024-12')
        with pytest.raises(InvalidMonthError):
            service.mark_month_paid('dave', 's2024', reg.id, '2025-05', True)
        stored = service.store.get_registration(reg.id)
        assert stored.forfeited_months == ()
        assert stored.total_forfeited == 0
        assert stored.monthly_payments == {}

    def test_registration_ignores_other_seasons(self, service, store):
        """Test registrations are scoped to their season."""
        store.save_registration(Registration(id='old', player_id='alice', season_id='s2023'))
        reg = service.register_player('alice')
        assert reg.id != 'old'


class TestMemberViews:
    """Tests for a player's round history and stored-data checks."""

    def test_player_rounds(self, service):
        """Test a player's rounds come back newest first."""
        service.submit_round('alice', SUBMISSION, submitted_at=at(1), round_id='a1')
        service.submit_round('alice', SUBMISSION, submitted_at=at(2), round_id='a2')
        service.submit_round('bob', SUBMISSION, submitted_at=at(3), round_id='b1')
        assert [r.id for r in service.get_player_rounds('alice')] == ['a2', 'a1']
        assert service.get_player_rounds('nobody') == []

    def test_validate_data_clean(self, service):
        """Test data written through the service has no errors."""
        reg = service.register_player('bob')
        service.toggle_forfeit('dave', 's2024', reg.id, '2024-04')
        service.submit_round('alice', SUBMISSION, submitted_at=T0, round_id='r1')
        assert service.validate_data() == ([], [])

    def test_validate_data_reports_broken_documents(self, service, store):
        """Test a registration forfeiting a month outside its season is an error."""
        store.save_registration(Registration(
            id='bad', player_id='bob', season_id='s2024',
            forfeited_months=('2024-12',), total_forfeited=50,
        ))
        errors, warnings = service.validate_data()
        assert errors == ['Registration bad forfeits months outside season s2024: 2024-12']
        assert warnings == []
