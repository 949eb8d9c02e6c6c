def test_health_ok(client):
    resp = client.get('/health')
    assert resp.status_code == 200
    assert resp.get_json() == {'ok': True}


def test_security_and_cors_headers(client, app_instance):
    resp = client.get('/health')
    assert resp.headers['X-Content-Type-Options'] == 'nosniff'
    assert resp.headers['X-Frame-Options'] == 'SAMEORIGIN'
    assert resp.headers['Access-Control-Allow-Origin'] == app_instance.config['CORS_ORIGIN']
    assert resp.headers['Access-Control-Allow-Credentials'] == 'true'


def test_cors_preflight(client):
    resp = client.open('/health', method='OPTIONS', headers={
        'Origin': 'http://localhost:5173',
        'Access-Control-Request-Method': 'GET',
        'Access-Control-Request-Headers': 'Content-Type',
    })
    assert resp.status_code == 204
    assert 'GET' in resp.headers['Access-Control-Allow-Methods']
    assert resp.headers['Access-Control-Allow-Headers'] == 'Content-Type'


def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert body['error']['status'] == 404
    assert 'detail' in body['error']


def test_health_rejects_post(client):
    resp = client.post('/health', json={})
    assert resp.status_code == 405
    assert resp.get_json()['error']['status'] == 405


def test_body_limit_configured(app_instance):
    assert app_instance.config['MAX_CONTENT_LENGTH'] == 2 * 1024 * 1024


def test_oversized_body_rejected(client, app_instance):
    limit = app_instance.config['MAX_CONTENT_LENGTH']
    resp = client.post('/health', data=b'x' * (limit + 1), content_type='application/json')
    assert resp.status_code == 413
    assert resp.get_json()['error']['status'] == 413
    assert resp.headers['X-Content-Type-Options'] == 'nosniff'
