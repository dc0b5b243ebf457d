from __future__ import annotations

import pytest

from medassist.core.exceptions import (
    ConfigurationError,
    MissingEntityError,
    RenderFailure,
    SendEventNotFoundError,
    StateConflictError,
    TransportFailure,
    ValidationError,
)
from medassist.main import status_for
from medassist.services.invoice_state import InvalidTransitionError


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (ValidationError("bad", field="email"), 422),
        (MissingEntityError("Invoice", 7), 404),
        (SendEventNotFoundError(7), 404),
        (StateConflictError("paid"), 409),
        (InvalidTransitionError("paid -> draft"), 409),
        (TransportFailure("Mailbox unavailable", send_id=3), 502),
        (RenderFailure("boom"), 500),
        (ConfigurationError("missing"), 500),
    ],
)
def test_domain_errors_map_to_http_status(exc, expected):
    assert status_for(exc) == expected
