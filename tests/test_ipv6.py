import pytest

from netScope.aggregators.ipv6 import convert_ipv6_to_ipv4
from netScope.errors import ValidationError
from netScope.models import ConversionType


def test_mapped_address_converts():
    result = convert_ipv6_to_ipv4("::ffff:192.168.1.1")
    assert result.conversion_type == ConversionType.MAPPED
    assert result.ipv4 == "192.168.1.1"


def test_mapped_address_in_hex_form():
    result = convert_ipv6_to_ipv4("0:0:0:0:0:ffff:c0a8:0101")
    assert result.conversion_type == ConversionType.MAPPED
    assert result.ipv4 == "192.168.1.1"


def test_unmapped_address_is_not_possible():
    result = convert_ipv6_to_ipv4("2001:db8::1")
    assert result.conversion_type == ConversionType.NOT_POSSIBLE
    assert result.ipv4 == "N/A"
    assert result.notes == "Conversion not supported for this IPv6 address"
    assert result.model_dump(by_alias=True)["conversionType"] == "Not Possible"


@pytest.mark.parametrize("value, message", [
    (None, "IPv6 address is required"),
    ("", "IPv6 address is required"),
    ("192.168.1.1", "Invalid IPv6 format"),
    ("not-an-address", "Invalid IPv6 format"),
])
def test_rejected_input(value, message):
    with pytest.raises(ValidationError) as exc_info:
        convert_ipv6_to_ipv4(value)
    assert exc_info.value.message == message
