import json

import main


def test_writes_contract_to_file(tmp_path, capsys):
    output = tmp_path / "public" / "paths.json"
    assert main.main(["-o", str(output), "--buffer", "2048", "--payload", "1000"]) == 0

    with open(output) as f:
        contract = json.load(f)
    assert len(contract["paths"]) == 2
    assert contract["generatedAt"].endswith("Z")
    assert len(contract["paths"][0]["simulation"]) == 21
    assert "Contract written to" in capsys.readouterr().err


def test_prints_contract_to_stdout(capsys):
    assert main.main(["--no-sim", "--compact"]) == 0

    out = capsys.readouterr().out.strip()
    assert "\n" not in out
    contract = json.loads(out)
    assert all("simulation" not in entry for entry in contract["paths"])


def test_summary(tmp_path, capsys):
    assert main.main(["-o", str(tmp_path / "paths.json"), "--summary"]) == 0

    err = capsys.readouterr().err
    assert "Bytes pushed: 54" in err
    assert "Bytes pulled: 54" in err
    assert "(deadEnd)" in err


def test_buffer_too_small_for_ingress_frame(capsys):
    assert main.main(["--buffer", "1030", "--payload", "1000"]) == 1
    assert "Error generating contract" in capsys.readouterr().err


def test_summary_with_buffer_too_small(capsys):
    args = ["--no-sim", "--compact", "--summary", "--buffer", "1030", "--payload", "1000"]
    assert main.main(args) == 1
    assert "Error simulating paths" in capsys.readouterr().err
