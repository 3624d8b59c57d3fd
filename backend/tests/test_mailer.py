import logging

import pytest

from jobboard.core.config import settings
from jobboard.services.mailer import LogMailer, Mailer


def test_mailer_without_delivery_cannot_be_built():
    class Incomplete(Mailer):
        pass

    with pytest.raises(TypeError):
        Mailer()
    with pytest.raises(TypeError):
        Incomplete()


def test_log_mailer_writes_verification_link(caplog):
    caplog.set_level(logging.INFO, logger="jobboard.mailer")

    LogMailer().send_verification_email("a@x.com", "abc123")

    assert "a@x.com" in caplog.text
    assert f"{settings.API_URL}/api/auth/verify-email?token=abc123" in caplog.text
