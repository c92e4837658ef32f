import unittest

from fastapi.testclient import TestClient

from scanvault.api import create_app
from scanvault.config.settings import Settings
from scanvault.runtime import ScanRuntime
from scanvault.storage.checkpoints import MemorySnapshotStore


def _settings() -> Settings:
    return Settings(
        data_dir="/tmp/scanvault-tests-unused",
        history_key="api-history",
        debounce_window_ms=500,
        probe_url="https://probe.test/",
        probe_timeout=0.1,
        monitor_interval=0.0,
        api_host="127.0.0.1",
        service_ports={},
        user_agent="scanvault-tests",
    )


class _Reachable:
    def __init__(self, online: bool) -> None:
        self.online = online

    async def __call__(self) -> bool:
        return self.online


class _ToggleStore(MemorySnapshotStore):
    def __init__(self) -> None:
        super().__init__()
        self.broken = False

    async def write(self, key: str, value: str) -> None:
        if self.broken:
            raise OSError("read-only filesystem")
        await super().write(key, value)


class ApiRoutesTest(unittest.TestCase):
    def setUp(self):
        self.adapter = _ToggleStore()
        self.runtime = ScanRuntime(
            _settings(),
            adapter=self.adapter,
            reachability=_Reachable(True),
            monitor=False,
        )
        self.client = TestClient(create_app(self.runtime))
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)

    def test_health_and_features(self):
        health = self.client.get("/healthz")
        self.assertEqual(health.status_code, 200)
        self.assertEqual(health.json()["status"], "ok")
        self.assertEqual(health.json()["history_key"], "api-history")

        features = self.client.get("/v1/features")
        self.assertEqual(features.status_code, 200)
        self.assertEqual(features.json(), {"enhanced": True, "connectivity": "online"})

    def test_gallery_scan_then_history(self):
        created = self.client.post(
            "/v1/scans/gallery", json={"payload": "WIFI:S:HomeNet;T:WPA;P:secret;;"}
        )
        self.assertEqual(created.status_code, 201)
        body = created.json()
        self.assertEqual(body["content_type"], "WIFI_CREDENTIAL")
        self.assertEqual(body["display_value"], "HomeNet")
        self.assertEqual(body["source"], "gallery")

        self.client.post("/v1/scans/gallery", json={"payload": "https://a.com"})
        history = self.client.get("/v1/history").json()
        self.assertEqual(history["count"], 2)
        self.assertEqual(
            [row["content_type"] for row in history["records"]],
            ["URL", "WIFI_CREDENTIAL"],
        )

    def test_gallery_scan_rejects_empty_payload(self):
        response = self.client.post("/v1/scans/gallery", json={"payload": ""})
        self.assertEqual(response.status_code, 422)

    def test_remove_and_clear(self):
        record = self.client.post("/v1/scans/gallery", json={"payload": "a@b.io"}).json()
        self.client.post("/v1/scans/gallery", json={"payload": "hello"})

        missing = self.client.delete("/v1/history/nope")
        self.assertEqual(missing.json(), {"id": "nope", "removed": False})

        removed = self.client.delete(f"/v1/history/{record['id']}")
        self.assertEqual(removed.json()["removed"], True)
        self.assertEqual(self.client.get("/v1/history").json()["count"], 1)

        cleared = self.client.delete("/v1/history")
        self.assertEqual(cleared.json(), {"status": "cleared"})
        self.assertEqual(self.client.get("/v1/history").json()["records"], [])

    def test_persistence_failure_is_503_and_history_unchanged(self):
        self.client.post("/v1/scans/gallery", json={"payload": "kept"})
        self.adapter.broken = True
        response = self.client.post("/v1/scans/gallery", json={"payload": "lost"})
        self.assertEqual(response.status_code, 503)
        history = self.client.get("/v1/history").json()
        self.assertEqual([row["raw_payload"] for row in history["records"]], ["kept"])


class ApiOfflineTest(unittest.TestCase):
    def test_offline_disables_enhanced_features(self):
        runtime = ScanRuntime(
            _settings(),
            adapter=MemorySnapshotStore(),
            reachability=_Reachable(False),
            monitor=False,
        )
        with TestClient(create_app(runtime)) as client:
            features = client.get("/v1/features").json()
        self.assertEqual(features, {"enhanced": False, "connectivity": "offline"})


if __name__ == "__main__":
    unittest.main()
