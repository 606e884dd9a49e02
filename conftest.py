import logging

import pytest


def pytest_addoption(parser):
    parser.addoption(
        '--run-benchmarks',
        action='store_true', default=False, help='Run benchmarks')


def pytest_collection_modifyitems(config, items):
    if config.getoption('--run-benchmarks'):
        return
    skip_benchmark = pytest.mark.skip(
        reason='Needs --run-benchmark to run benchmarks')

    for item in items:
        if 'benchmark' in item.keywords:
            item.add_marker(skip_benchmark)


@pytest.fixture(autouse=True, scope='function')
def capture_strata_logs(caplog):
    """Makes sure that debug logs from strata are captured for every
    test, so that logging calls are always exercised (including their
    format strings), even when the test doesn't inspect them.
    """
    caplog.set_level(logging.DEBUG, logger='strata')
    yield caplog
