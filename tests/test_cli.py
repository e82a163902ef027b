from dnslib import A, DNSRecord

from dns_rr.cli import main, parse_args

CONFIG = """\
records:
  - {name: www.example.com., type: 5, TTL: 60, data: web.example.com.}
  - {name: web.example.com., type: 1, TTL: 300, data: 192.0.2.1}
  - {name: web.example.com., type: 1, TTL: 300, data: 192.0.2.2}
"""


def test_defaults():
    args = parse_args([])
    assert args.config == "config.yaml"
    assert args.format == "hex"
    assert args.cache is False
    assert args.log_level == "INFO"


def test_hex_output(tmp_path, capsys):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    assert main(["--config", str(path)]) == 0
    out = capsys.readouterr().out.strip()
    data = bytes.fromhex(out)
    assert data.startswith(b"\x00\x00\x84\x00\x00\x00\x00\x03\x00\x00\x00\x00")

    message = DNSRecord.parse(data)
    assert message.header.a == 3
    assert [str(rr.rname) for rr in message.rr] == [
        "www.example.com.",
        "web.example.com.",
        "web.example.com.",
    ]
    assert str(message.rr[0].rdata) == "web.example.com."
    assert message.rr[1].rdata == A("192.0.2.1")
    assert message.rr[2].rdata == A("192.0.2.2")


def test_summary_output(tmp_path, capsys):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    assert main(["--config", str(path), "--format", "summary", "--cache"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "www.example.com\tCNAME\t60\tweb.example.com.",
        "web.example.com\tA\t300\t192.0.2.1, 192.0.2.2",
    ]


def test_missing_config(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "absent.yaml")]) == 1
    assert capsys.readouterr().out == ""
