"""Tests for the seed document parser."""

import json

import pytest

from leadflow.domain.errors import InvalidRequest, InvalidVendorConfig
from leadflow.tools.seed_db import load_seed_file, parse_seed


def _doc(**tenant_overrides):
    tenant = {
        "id": "t1",
        "name": "Acme",
        "vendors": [
            {"id": "a", "display_name": "Ana", "participates": True, "order": 0},
            {"id": "b", "display_name": "Bruno", "participates": True, "weight": 2,
             "pipeline_override_id": "p-main"},
        ],
        "pipelines": [
            {"id": "p-main", "name": "Main", "responsible_vendor_id": "a",
             "stages": [{"id": "s-new", "name": "New", "is_initial": True},
                        {"id": "s-won", "name": "Won"}]},
        ],
    }
    tenant.update(tenant_overrides)
    return {"tenants": [tenant]}


def test_parse_full_document():
    [tenant] = parse_seed(_doc())

    assert (tenant.id, tenant.name) == ("t1", "Acme")
    assert [v.id for v in tenant.vendors] == ["a", "b"]
    assert tenant.vendors[1].weight == 2
    assert tenant.vendors[1].order is None
    assert tenant.pipelines[0].active is True
    assert [(s.id, s.pipeline_id, s.position) for s in tenant.stages] == [
        ("s-new", "p-main", 0),
        ("s-won", "p-main", 1),
    ]


def test_invalid_weight_rejected():
    doc = _doc(vendors=[{"id": "a", "display_name": "Ana", "weight": 0}], pipelines=[])
    with pytest.raises(InvalidVendorConfig):
        parse_seed(doc)


def test_unknown_override_rejected():
    doc = _doc(vendors=[{"id": "a", "display_name": "Ana", "pipeline_override_id": "nope"}])
    with pytest.raises(InvalidVendorConfig):
        parse_seed(doc)


def test_unknown_responsible_vendor_rejected():
    doc = _doc(pipelines=[{"id": "p-main", "name": "Main", "responsible_vendor_id": "ghost"}])
    with pytest.raises(InvalidRequest):
        parse_seed(doc)


def test_duplicate_ids_rejected():
    doc = _doc(vendors=[{"id": "a", "display_name": "A"}, {"id": "a", "display_name": "A2"}],
               pipelines=[])
    with pytest.raises(InvalidRequest):
        parse_seed(doc)


def test_load_from_file(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(_doc()), encoding="utf-8")

    tenants = load_seed_file(path)

    assert len(tenants) == 1
    assert len(tenants[0].stages) == 2
