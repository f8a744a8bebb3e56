import pytest

from test_segments import TestResult


@pytest.fixture
def r(request):
    """Per-test result record, as handed out by the script runner."""
    return TestResult(request.node.name)
