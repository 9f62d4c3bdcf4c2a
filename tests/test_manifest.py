import json
from concurrent.futures import ThreadPoolExecutor

from googmod.manifest import ModuleRecord, ModulesManifest


def test_records_modules_and_references() -> None:
    manifest = ModulesManifest()

    manifest.add_module("/src/a/b.ts", "a.b")
    manifest.add_referenced_module("/src/a/b.ts", "a.c")
    manifest.add_referenced_module("/src/a/b.ts", "a.c")
    manifest.record("/src/a/c.ts", "a.c", ["tslib"])

    assert manifest.modules == [ModuleRecord("/src/a/b.ts", "a.b"), ModuleRecord("/src/a/c.ts", "a.c")]
    assert manifest.referenced("/src/a/b.ts") == ["a.c"]
    assert manifest.referenced("/src/missing.ts") == []
    assert manifest.file_name_for("a.c") == "/src/a/c.ts"
    assert manifest.file_name_for("a.x") is None
    assert len(manifest) == 2


def test_manifests_can_be_merged() -> None:
    first = ModulesManifest()
    first.record("/src/a.ts", "a", ["tslib"])
    second = ModulesManifest()
    second.record("/src/a.ts", "a", ["b", "tslib"])
    second.record("/src/b.ts", "b", [])

    first.add_manifest(second)

    assert first.file_names == ["/src/a.ts", "/src/b.ts"]
    assert first.referenced("/src/a.ts") == ["tslib", "b"]


def test_parallel_appends_are_not_lost() -> None:
    manifest = ModulesManifest()

    def record(index: int) -> None:
        manifest.record(f"/src/m{index}.ts", f"m{index}", ["tslib", f"dep{index % 3}"])

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(record, range(200)))

    assert len(manifest) == 200
    assert manifest.referenced("/src/m4.ts") == ["tslib", "dep1"]


def test_write_produces_json(tmp_path) -> None:
    manifest = ModulesManifest()
    manifest.record("/src/a/b.ts", "a.b", ["a.c"])
    target = tmp_path / "manifest.json"

    manifest.write(target)

    assert json.loads(target.read_text(encoding="utf-8")) == {
        "modules": [{"file_name": "/src/a/b.ts", "module_name": "a.b", "referenced": ["a.c"]}]
    }
