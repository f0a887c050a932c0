"""
Tests for the eco points ledger.
"""
import pytest

from database.connection import get_db_session
from repositories.points_credit_repository import PointsCreditRepository
from repositories.user_account_repository import UserAccountRepository


class TestCredit:
    """Tests for at-most-once crediting."""

    def test_first_credit_is_recorded(self, ledger):
        with get_db_session() as session:
            result = ledger.credit(session, 'user-1', 50, 'sub-1')

        assert result.credited is True
        assert result.amount == 50
        assert result.total == 50
        assert ledger.total_for('user-1') == 50

    def test_repeated_key_returns_prior_result(self, ledger):
        with get_db_session() as session:
            first = ledger.credit(session, 'user-1', 50, 'sub-1')
        with get_db_session() as session:
            second = ledger.credit(session, 'user-1', 50, 'sub-1')

        assert first.credited is True
        assert second.credited is False
        assert second.amount == 50
        assert ledger.total_for('user-1') == 50

    def test_distinct_keys_accumulate(self, ledger):
        with get_db_session() as session:
            ledger.credit(session, 'user-1', 50, 'sub-1')
            ledger.credit(session, 'user-1', 50, 'sub-2')

        assert ledger.total_for('user-1') == 100

    def test_cached_total_matches_ledger(self, ledger):
        with get_db_session() as session:
            ledger.credit(session, 'user-1', 50, 'sub-1')
            ledger.credit(session, 'user-1', 50, 'sub-1')

        with get_db_session() as session:
            account = UserAccountRepository().get_by_id(session, 'user-1')
            assert account.eco_points == PointsCreditRepository().sum_for_user(session, 'user-1') == 50

    @pytest.mark.parametrize('amount', [0, -10, None])
    def test_non_positive_amount_rejected(self, ledger, amount):
        with get_db_session() as session:
            with pytest.raises(ValueError):
                ledger.credit(session, 'user-1', amount, 'sub-1')

    def test_credit_rolls_back_with_caller_transaction(self, ledger):
        with pytest.raises(RuntimeError):
            with get_db_session() as session:
                ledger.credit(session, 'user-1', 50, 'sub-1')
                raise RuntimeError('transition failed')

        assert ledger.total_for('user-1') == 0

    def test_unknown_user_total_is_zero(self, ledger):
        assert ledger.total_for('nobody') == 0
