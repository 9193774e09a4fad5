import csv
import json

from ports.models import DictPackageLookup, Dependency, FeatureDescriptor, SourceControlFile
from resolver import resolve
from resolver.export import CSV_HEADERS, export_csv, export_json
from versioning.models import PackageRequest, Version


def make_plan():
    lookup = DictPackageLookup([
        SourceControlFile(
            "curl", Version("8.5.0"), (Dependency("zlib"),),
            features={"ssl": FeatureDescriptor("ssl"), "http2": FeatureDescriptor("http2")},
            default_features=frozenset({"ssl", "http2"}),
        ),
        SourceControlFile("zlib", Version("1.3.1", port_revision=2)),
    ])
    return resolve([PackageRequest("curl")], {}, {}, "x64-linux", "x64-linux", lookup=lookup)


def test_json_export(tmp_path):
    plan = make_plan()
    out = tmp_path / "plan.json"
    export_json(plan, str(out))

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data == plan.to_dict()
    assert [a["name"] for a in data["actions"]] == ["zlib", "curl"]
    zlib = data["actions"][0]
    assert zlib["version"] == "1.3.1"
    assert zlib["port_revision"] == 2
    assert zlib["classification"] == "needs-build"
    assert data["actions"][1]["dependencies"] == ["zlib:x64-linux"]


def test_csv_export(tmp_path):
    plan = make_plan()
    out = tmp_path / "plan.csv"
    export_csv(plan, str(out))

    with open(out, newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows[0] == CSV_HEADERS
    assert len(rows) == 3
    curl = dict(zip(CSV_HEADERS, rows[2]))
    assert curl["Package Name"] == "curl"
    assert curl["Features"] == "http2;ssl"
    assert curl["Request Type"] == "user-requested"
    assert curl["Dependencies"] == "zlib:x64-linux"
    assert curl["ABI"] == plan.find("curl").abi
