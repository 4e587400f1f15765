import pytest

from oskit.firewall.cli import firewall_main, serial_main
from oskit.firewall.packet import Packet, format_result, packet_hash, process_packet

SOURCES = (0xF1ABCDEF, 0x00000010, 0x1F1F1F1F, 0x80000000)


def make_packets(count):
    return [
        Packet(
            source=SOURCES[i % len(SOURCES)],
            dest=i,
            timestamp=100 + i,
            payload=bytes([i + 1]) * 4,
        )
        for i in range(count)
    ]


def expected_text(packets):
    return "".join(
        format_result(process_packet(p), packet_hash(p), p.timestamp)
        for p in packets
    )


@pytest.fixture
def input_file(tmp_path):
    packets = make_packets(6)
    path = tmp_path / "in.bin"
    path.write_bytes(b"".join(p.to_bytes() for p in packets))
    return path, packets


def test_serial_writes_one_line_per_packet(tmp_path, input_file):
    src, packets = input_file
    dst = tmp_path / "out.txt"
    assert serial_main([str(src), str(dst)]) == 0
    assert dst.read_text(encoding="ascii") == expected_text(packets)


@pytest.mark.parametrize("consumers", ["1", "3", "32"])
def test_firewall_matches_serial(tmp_path, input_file, consumers):
    src, _ = input_file
    serial_out = tmp_path / "serial.txt"
    threaded_out = tmp_path / "threaded.txt"
    assert serial_main([str(src), str(serial_out)]) == 0
    assert firewall_main([str(src), str(threaded_out), consumers]) == 0
    assert threaded_out.read_text() == serial_out.read_text()


def test_firewall_usage(capsys):
    assert firewall_main(["a", "b"]) == 1
    assert "Usage" in capsys.readouterr().err


def test_serial_usage(capsys):
    assert serial_main(["only-one"]) == 1
    assert "<input-file> <output-file>" in capsys.readouterr().err


@pytest.mark.parametrize(
    "value, shown", [("0", "0"), ("33", "33"), ("abc", "0"), ("-4", "-4")]
)
def test_firewall_rejects_consumer_count(tmp_path, capsys, value, shown):
    code = firewall_main(["in", str(tmp_path / "out.txt"), value])
    assert code == 1
    err = capsys.readouterr().err
    assert f"num-consumers [{shown}] must be in the interval [1-32]" in err


def test_firewall_accepts_leading_digits(tmp_path, input_file):
    src, packets = input_file
    dst = tmp_path / "out.txt"
    assert firewall_main([str(src), str(dst), "2threads"]) == 0
    assert dst.read_text() == expected_text(packets)


def test_serial_truncated_input(tmp_path, capsys):
    src = tmp_path / "in.bin"
    src.write_bytes(make_packets(1)[0].to_bytes() + b"\x00" * 5)
    assert serial_main([str(src), str(tmp_path / "out.txt")]) == 1
    assert "truncated" in capsys.readouterr().err


def test_firewall_truncated_input(tmp_path, capsys):
    src = tmp_path / "in.bin"
    src.write_bytes(b"\x00" * 100)
    assert firewall_main([str(src), str(tmp_path / "out.txt"), "2"]) == 1
    assert "truncated" in capsys.readouterr().err


def test_missing_input(tmp_path):
    missing = str(tmp_path / "missing.bin")
    out = str(tmp_path / "out.txt")
    assert serial_main([missing, out]) == 1
    assert firewall_main([missing, out, "2"]) == 1