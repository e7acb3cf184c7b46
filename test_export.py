import json

import pytest

from packet_sim import config
from packet_sim.core.mutation import NO_MUTATION, Pull, mutation_from_dict
from packet_sim.paths import get_path
from packet_sim.paths.egress import TCP_IPV4_EGRESS
from packet_sim.paths.ingress import TCP_IPV4_INGRESS
from packet_sim.utils.export import (
    ExportOptions,
    build_export,
    export_all_paths,
    layer_metadata,
    load_export,
    save_export,
    steps_from_dicts,
    to_json,
)


def test_envelope():
    envelope = build_export(ExportOptions(buffer_size=2048, payload_size=1000), "2024-01-01T00:00:00Z")

    assert envelope["version"] == config.CONTRACT_VERSION
    assert envelope["kernelVersion"] == config.KERNEL_VERSION
    assert envelope["generatedAt"] == "2024-01-01T00:00:00Z"
    assert [p["path"]["id"] for p in envelope["paths"]] == [TCP_IPV4_EGRESS, TCP_IPV4_INGRESS]

    metadata = envelope["metadata"]
    assert metadata["bufferSize"] == 2048
    assert metadata["payloadSize"] == 1000
    assert metadata["headerSizes"]["ethernet"] == 14
    assert metadata["layers"][0] == {
        "id": "user",
        "name": "User Space",
        "cssClass": "layer-user",
        "order": 0,
    }
    assert len(layer_metadata()) == 6


def test_simulation_steps_carry_conntrack():
    envelope = build_export(ExportOptions(buffer_size=2048, payload_size=1000))
    simulation = envelope["paths"][0]["simulation"]

    assert len(simulation) == 21
    first = simulation[0]
    assert first["stepNumber"] == 1
    assert first["function"]["id"] == "tcp_sendmsg"
    assert first["skbuffState"] == {
        "head": 0,
        "data": 1048,
        "tail": 2048,
        "end": 2048,
        "layers": [],
    }
    assert first["conntrackState"]["state"] == "ESTABLISHED"
    assert "edgeTaken" not in first
    assert simulation[1]["edgeTaken"]["from"] == "tcp_sendmsg"
    assert len(simulation[-1]["skbuffState"]["layers"]) == 3


def test_no_simulation():
    envelope = build_export(ExportOptions(include_simulation=False))
    assert all("simulation" not in entry for entry in envelope["paths"])


def test_json_formatting():
    envelope = {"a": [1, 2], "b": {"c": "d"}}
    assert to_json(envelope, pretty=False) == '{"a":[1,2],"b":{"c":"d"}}'
    assert to_json(envelope).startswith('{\n  "a"')

    compact = export_all_paths(ExportOptions(pretty=False, include_simulation=False))
    assert "\n" not in compact
    assert json.loads(compact)["paths"][1]["path"]["direction"] == "ingress"


def test_save_and_load(tmp_path):
    filename = tmp_path / "data" / "paths.json"
    save_export(export_all_paths(generated_at="now"), str(filename))

    contract = load_export(str(filename))
    assert contract.version == config.CONTRACT_VERSION
    assert contract.generated_at == "now"
    assert [p.id for p in contract.paths] == [TCP_IPV4_EGRESS, TCP_IPV4_INGRESS]

    ingress = get_path(TCP_IPV4_INGRESS)
    expected = ingress.simulate(config.DEFAULT_BUFFER_SIZE, config.DEFAULT_PAYLOAD_SIZE)
    loaded = contract.simulations[TCP_IPV4_INGRESS]
    assert [s.buffer for s in loaded] == [s.buffer for s in expected]
    assert [s.edge_taken for s in loaded] == [s.edge_taken for s in expected]
    assert loaded[0].sidecar["state"] == "ESTABLISHED"
    assert contract.paths[1].functions == ingress.functions


def test_load_without_simulation(tmp_path):
    filename = tmp_path / "paths.json"
    save_export(export_all_paths(ExportOptions(include_simulation=False)), str(filename))
    assert load_export(str(filename)).simulations == {}


def test_steps_from_dicts_rejects_unknown_function():
    path = get_path(TCP_IPV4_EGRESS)
    data = [step.to_dict() for step in path.simulate(2048, 1000)]
    data[3]["function"]["id"] = "not_a_function"
    with pytest.raises(ValueError):
        steps_from_dicts(path, data)


def test_mutation_from_dict():
    assert mutation_from_dict(None) is NO_MUTATION
    assert mutation_from_dict({"operation": "pull", "size": 14, "headerType": "ethernet"}) == Pull(
        14, "ethernet"
    )
    with pytest.raises(ValueError):
        mutation_from_dict({"operation": "clone", "size": 0})


def test_failed_mutations_survive_the_wire_form():
    path = get_path(TCP_IPV4_EGRESS)
    steps = path.simulate(1030, 1000)
    loaded = steps_from_dicts(path, json.loads(json.dumps([s.to_dict() for s in steps])))

    assert [s.mutation_applied for s in loaded] == [s.mutation_applied for s in steps]
    assert [s.node.id for s in loaded if not s.mutation_applied] == ["ip_queue_xmit", "neigh_hh_output"]
