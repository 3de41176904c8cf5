import redis

class StubRedis:

    def __init__(self, healthy=True):
        self.healthy = healthy

    def ping(self):
        if not self.healthy:
            raise redis.ConnectionError("connection refused")
        return True

    def close(self):
        pass

def test_root(client):
    assert client.get("/").json()["message"] == "TrustRoute API"

def test_health_without_cache(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["services"] == {"backend": "ok", "database": "ok", "redis": "disabled"}

def test_health_with_cache(app, client):
    app.state.redis = StubRedis()

    body = client.get("/health").json()
    assert body["services"]["redis"] == "ok"

def test_health_reports_cache_failure(app, client):
    app.state.redis = StubRedis(healthy=False)

    response = client.get("/health")
    assert response.status_code == 500
    assert response.json()["status"] == "error"
    assert response.json()["services"]["redis"] == "error"
