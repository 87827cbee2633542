import logging

import pytest

from taskapi.core import config
from taskapi.core.logging_setup import setup_logging


@pytest.mark.parametrize(
    ('raw', 'expected'),
    [(None, True), ('true', True), ('1', True), (' YES ', True), ('false', False), ('0', False)],
)
def test_get_bool(raw, expected) -> None:
    assert config._get_bool(raw, default=True) is expected


def test_get_int_falls_back_on_blank() -> None:
    assert config._get_int(None, 7) == 7
    assert config._get_int('  ', 7) == 7
    assert config._get_int('12', 7) == 12


def test_production_requires_real_secret(monkeypatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'change-me')

    with pytest.raises(RuntimeError):
        config.validate_runtime_config()

    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'a-real-secret')
    config.validate_runtime_config()


def test_setup_logging_does_not_stack_handlers() -> None:
    setup_logging('debug')
    setup_logging('warning')

    root = logging.getLogger()
    owned = [handler for handler in root.handlers if getattr(handler, '_taskapi_handler', False)]

    assert len(owned) == 1
    assert root.level == logging.WARNING
    setup_logging()
