from datetime import date
from pathlib import Path

import pytest

from filezen.exceptions import DeliveryError
from filezen.models.delivery import DeliveryRequest, Recipient, parse_delivery_conf

CONF = """\
from: alice@example.com
mailto: Bob Smith <bob@example.com>
MailTo: carol@example.com
file: /data/report.pdf
start: 2026/04/01
days: 7
limit: 3
subject: Monthly report
password: s3cret
notify: true
comment: Hello,
please find the report attached.
key: value lines here stay in the body
"""


def test_recipient_parse_named_address() -> None:
    assert Recipient.parse("Bob Smith <bob@example.com>") == Recipient(
        name="Bob Smith", email="bob@example.com"
    )


def test_recipient_parse_bare_address() -> None:
    assert Recipient.parse(" carol@example.com ") == Recipient(
        name="carol@example.com", email="carol@example.com"
    )


def test_recipient_parse_without_address() -> None:
    assert Recipient.parse("nobody") is None


def test_parse_delivery_conf() -> None:
    options = parse_delivery_conf(CONF)

    assert options["from"] == "alice@example.com"
    assert options["mailto"] == "Bob Smith <bob@example.com>,carol@example.com"
    assert options["start"] == "2026/04/01"
    assert options["comment"] == (
        "Hello,\nplease find the report attached.\nkey: value lines here stay in the body\n"
    )


def test_from_options_builds_request() -> None:
    request = DeliveryRequest.from_options(parse_delivery_conf(CONF))

    assert request.sender == "alice@example.com"
    assert [r.email for r in request.recipients] == ["bob@example.com", "carol@example.com"]
    assert request.file == Path("/data/report.pdf")
    assert request.start == date(2026, 4, 1)
    assert request.days == 7
    assert request.download_limit == 3
    assert request.password == "s3cret"
    assert request.notify_download is True


def test_from_conf_reads_file(tmp_path: Path) -> None:
    conf = tmp_path / "send.conf"
    conf.write_text(CONF, encoding="utf-8")

    assert DeliveryRequest.from_conf(conf).subject == "Monthly report"


@pytest.mark.parametrize(
    ("override", "message"),
    [
        ({"from": ""}, "No sender"),
        ({"mailto": "nobody"}, "No recipients"),
        ({"file": ""}, "No file"),
        ({"start": "2026-04-01"}, "Invalid start date"),
        ({"days": "seven"}, "Invalid days"),
        ({"limit": ""}, "Invalid limit"),
    ],
)
def test_from_options_validation(override: dict[str, str], message: str) -> None:
    options = parse_delivery_conf(CONF) | override

    with pytest.raises(DeliveryError, match=message):
        DeliveryRequest.from_options(options)


def test_form_fields() -> None:
    request = DeliveryRequest(
        sender="alice@example.com",
        recipients=(
            Recipient(name="Bob", email="bob@example.com"),
            Recipient(name="Carol", email="carol@example.com"),
        ),
        file=Path("/data/a.zip"),
        start=date(2026, 12, 24),
        days=14,
        download_limit=5,
        password="pw",
    )

    fields = request.form_fields()

    assert fields["exp_term_start_year"] == "2026"
    assert fields["exp_term_start_month"] == "12"
    assert fields["exp_term_start_day"] == "24"
    assert fields["exp_term_start_hour"] == "00"
    assert fields["exp_term_type"] == "by_dur"
    assert fields["exp_term_duration"] == "14"
    assert fields["download_times"] == "5"
    assert fields["recipients-max-id"] == "2"
    assert fields["recipient-name-2"] == "Carol"
    assert fields["recipient-email-2"] == "carol@example.com"
    assert fields["from_addr"] == "user"
    assert fields["from_addr_val"] == "alice@example.com"
    assert fields["password_retype"] == "pw"
    assert fields["notify_download"] == "0"
    assert fields["new_alert"] == "1"
    assert "file1" not in fields
    assert "valid_key" not in fields
