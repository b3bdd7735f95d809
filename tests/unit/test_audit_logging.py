"""
Unit tests for audit logging functionality.

Every committed workflow change must leave an audit line naming the model,
the record and the acting user.
"""

import pytest
import logging
from datetime import time
from unittest.mock import patch, MagicMock

from turfbook.audit import (
    audit_log_create, audit_log_update, audit_log_security_event,
    audit_log_bulk_operation, get_model_changes,
)
from turfbook.bookings.services import BookingWorkflow
from turfbook.exceptions import AuthorizationError
from turfbook.identity import Identity, Role


@pytest.fixture
def mock_logger():
    with patch('turfbook.audit.setup_audit_logger') as mock_setup:
        logger = MagicMock()
        mock_setup.return_value = logger
        yield logger


def _messages(logger, level=logging.INFO):
    return [args[1] for args, _ in logger.log.call_args_list if args[0] == level]


@pytest.mark.unit
class TestAuditLogging:
    """Test audit logging functions and their line format."""

    def test_audit_log_create_format(self, app, mock_logger):
        with app.app_context():
            audit_log_create('Booking', 123, 'Requested Greenfield Arena',
                             actor=Identity(7, Role.PLAYER))

        mock_logger.log.assert_called_once()
        level, message = mock_logger.log.call_args[0]
        assert level == logging.INFO
        assert message == 'CREATE | Booking | ID: 123 | User: player (ID: 7) | Requested Greenfield Arena'

    def test_audit_log_update_includes_previous_values(self, app, mock_logger):
        with app.app_context():
            audit_log_update('JoinRequest', 456, 'Approved join request',
                             {'status': 'pending'}, actor=Identity(3, Role.PLAYER))

        message = _messages(mock_logger)[0]
        assert message.startswith('UPDATE | JoinRequest | ID: 456')
        assert message.endswith('| Changes: status=pending')

    def test_audit_log_security_event_is_warning(self, app, mock_logger):
        with app.app_context():
            audit_log_security_event('ACCESS_DENIED', 'Attempted to approve bookings')

        warnings = _messages(mock_logger, logging.WARNING)
        assert len(warnings) == 1
        assert 'SECURITY | ACCESS_DENIED | User: SYSTEM' in warnings[0]

    def test_audit_log_bulk_operation_format(self, app, mock_logger):
        with app.app_context():
            audit_log_bulk_operation('BULK_UPDATE', 'JoinRequest', 4, 'Rejected pending requests')

        message = _messages(mock_logger)[0]
        assert 'BULK_UPDATE | JoinRequest | Count: 4' in message

    def test_audit_failure_does_not_raise(self, app, caplog):
        with app.app_context():
            with patch('turfbook.audit.setup_audit_logger', side_effect=OSError('disk full')):
                audit_log_create('Turf', 1, 'Registered turf')

        assert 'AUDIT_FAILURE' in caplog.text

    def test_get_model_changes(self):
        turf = MagicMock(name='turf', price_per_hour=500, close_time=time(21, 0))

        changes = get_model_changes(turf, {'price_per_hour': 750, 'close_time': time(21, 0)})

        assert changes == {'price_per_hour': '500'}


@pytest.mark.unit
class TestWorkflowAuditTrail:
    """Test that workflow operations write audit lines."""

    def test_booking_lifecycle_is_audited(self, db_session, mock_logger, turf,
                                          owner_identity, player_identity, tomorrow, clock):
        workflow = BookingWorkflow(clock=clock)
        booking = workflow.request_slot(turf.id, player_identity, tomorrow, time(17, 0), time(19, 0))
        workflow.approve(booking.id, owner_identity)

        create_line, approve_line = _messages(mock_logger)
        assert create_line.startswith(f'CREATE | Booking | ID: {booking.id}')
        assert str(player_identity) in create_line
        assert f'UPDATE | Booking | ID: {booking.id} | User: {owner_identity}' in approve_line

    def test_denied_approval_is_audited(self, db_session, mock_logger, turf,
                                        player_identity, tomorrow, clock):
        workflow = BookingWorkflow(clock=clock)
        booking = workflow.request_slot(turf.id, player_identity, tomorrow, time(17, 0), time(19, 0))

        with pytest.raises(AuthorizationError):
            workflow.approve(booking.id, player_identity)

        warnings = _messages(mock_logger, logging.WARNING)
        assert len(warnings) == 1
        assert 'ACCESS_DENIED' in warnings[0]
        assert f'Turf {turf.id}' in warnings[0]
