import importlib
import logging

import utils


def test_unknown_log_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv('FLUXMETA_LOG_LEVEL', 'chatty')
    try:
        reloaded = importlib.reload(utils)
        assert reloaded.LOG_LEVEL == 'INFO'
    finally:
        monkeypatch.delenv('FLUXMETA_LOG_LEVEL')
        importlib.reload(utils)


def test_known_log_level_is_kept(monkeypatch):
    monkeypatch.setenv('FLUXMETA_LOG_LEVEL', 'debug')
    try:
        assert importlib.reload(utils).LOG_LEVEL == 'DEBUG'
    finally:
        monkeypatch.delenv('FLUXMETA_LOG_LEVEL')
        importlib.reload(utils)


def test_logger_name():
    assert utils.logger is logging.getLogger('FluxMeta')


def test_format_size():
    assert utils.format_size(512) == '512 B'
    assert utils.format_size(1536) == '1.50 KB'
    assert utils.format_size(3 * 1024 ** 3) == '3.00 GB'
