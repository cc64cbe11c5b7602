import pytest
import regex

from gotenberg.deadline import Deadline, DeadlineExceeded
from gotenberg.filter import FilteredError, filter_deadline


@pytest.mark.parametrize(
    "allowed,denied,s,timeout,error",
    [
        ("foo", "", "foo", -3600, DeadlineExceeded),
        ("foo", "", "bar", 5, FilteredError),
        ("", "foo", "foo", -3600, DeadlineExceeded),
        ("", "foo", "foo", 5, FilteredError),
    ],
)
def test_filter_errors(allowed, denied, s, timeout, error):
    with pytest.raises(error):
        filter_deadline(regex.compile(allowed), regex.compile(denied), s, Deadline(timeout))


def test_filter_success():
    assert filter_deadline(regex.compile(""), regex.compile(""), "foo", Deadline(5)) is None


def test_filter_allowed_and_not_denied():
    assert filter_deadline(regex.compile("^f"), regex.compile("z"), "foo", Deadline(5)) is None