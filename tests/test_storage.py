import io

import pytest
import requests

from services.storage import StorageFileNotFound, open_file, stored_path

API = 'https://cloud-api.yandex.net/v1/disk'


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, content=b'', headers=None):
        self.status_code = status_code
        self._json = json_data or {}
        self.content = content
        self.headers = headers or {}
        self.text = str(json_data)
        self.closed = False

    def json(self):
        return self._json

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]

    def close(self):
        self.closed = True


@pytest.fixture
def provider(monkeypatch):
    """Stand-in for the Yandex Disk API.

    Responses are keyed by (method, url) or, more specifically, by
    (method, url, path param).
    """
    routes = {}
    calls = []

    def fake_request(method, url, **kwargs):
        calls.append((method, url, kwargs))
        path = (kwargs.get('params') or {}).get('path')
        response = routes.get((method, url, path), routes.get((method, url)))
        if isinstance(response, Exception):
            raise response
        return response or FakeResponse(status_code=404)

    monkeypatch.setattr('services.storage.requests.request', fake_request)
    return routes, calls


def _upload_routes(routes, folder_status=201):
    routes[('PUT', f'{API}/resources')] = FakeResponse(status_code=folder_status)
    routes[('GET', f'{API}/resources/upload')] = FakeResponse(json_data={'href': 'https://uploader.yandex.net/put/1'})
    routes[('PUT', 'https://uploader.yandex.net/put/1')] = FakeResponse(status_code=201)
    routes[('PUT', f'{API}/resources/publish')] = FakeResponse(json_data={'href': 'meta'})
    routes[('GET', f'{API}/resources')] = FakeResponse(json_data={'public_url': 'https://yadi.sk/i/xyz'})
    routes[('GET', f'{API}/public/resources/download')] = FakeResponse(json_data={'href': 'https://downloader.yandex.net/xyz'})


def _upload(client, headers, name='my photo.png'):
    return client.post(
        '/api/storage/upload',
        data={'image': (io.BytesIO(b'\x89PNG'), name)},
        content_type='multipart/form-data',
        headers=headers,
    )


def test_upload_publishes_file_in_upload_folder(client, auth_headers, provider):
    routes, calls = provider
    _upload_routes(routes)

    response = _upload(client, auth_headers)

    body = response.get_json()
    assert response.status_code == 200
    assert body['fileName'] == 'my_photo.png'
    assert body['publicUrl'] == 'https://yadi.sk/i/xyz'
    assert body['directUrl'] == 'https://downloader.yandex.net/xyz'

    folder_method, folder_url, folder_kwargs = calls[0]
    assert (folder_method, folder_url) == ('PUT', f'{API}/resources')
    assert folder_kwargs['params'] == {'path': 'uploads'}
    assert folder_kwargs['headers'] == {'Authorization': 'OAuth test-yandex-token'}

    link_kwargs = calls[1][2]
    assert link_kwargs['params'] == {'path': 'uploads/my_photo.png', 'overwrite': 'true'}
    assert all('timeout' in kwargs for _, _, kwargs in calls)


def test_upload_into_existing_folder(client, auth_headers, provider):
    routes, _ = provider
    _upload_routes(routes, folder_status=409)

    assert _upload(client, auth_headers).status_code == 200


def test_upload_requires_admin(client, provider):
    response = _upload(client, {})

    assert response.status_code == 401
    assert provider[1] == []


def test_upload_requires_file(client, auth_headers, provider):
    response = client.post('/api/storage/upload', data={}, content_type='multipart/form-data', headers=auth_headers)

    assert response.status_code == 400


def test_upload_without_token_is_a_server_error(app, client, auth_headers, provider):
    app.config['YANDEX_OAUTH_TOKEN'] = None

    response = _upload(client, auth_headers)

    assert response.status_code == 500
    assert provider[1] == []


def test_upload_provider_outage(client, auth_headers, provider):
    routes, _ = provider
    routes[('PUT', f'{API}/resources')] = requests.ConnectionError('unreachable')

    response = _upload(client, auth_headers)

    assert response.status_code == 500
    assert 'unreachable' not in response.get_data(as_text=True)


def test_proxy_streams_file_from_upload_folder(client, provider):
    routes, calls = provider
    download = FakeResponse(content=b'image-bytes' * 1000, headers={'Content-Type': 'image/jpeg'})
    routes[('GET', f'{API}/resources/download', 'uploads/beach.jpg')] = FakeResponse(
        json_data={'href': 'https://downloader.yandex.net/f'})
    routes[('GET', 'https://downloader.yandex.net/f')] = download

    response = client.get('/api/storage/files/beach.jpg')

    assert response.status_code == 200
    assert response.content_type == 'image/jpeg'
    assert response.data == b'image-bytes' * 1000
    assert download.closed is True
    assert calls[0][2]['params'] == {'path': 'uploads/beach.jpg'}


def test_proxy_cannot_reach_files_outside_upload_folder(client, provider):
    routes, calls = provider
    routes[('GET', f'{API}/resources/download', 'Documents/passports/private.pdf')] = FakeResponse(
        json_data={'href': 'https://downloader.yandex.net/secret'})
    routes[('GET', 'https://downloader.yandex.net/secret')] = FakeResponse(content=b'SECRET')

    response = client.get('/api/storage/files/Documents/passports/private.pdf')

    assert response.status_code == 404
    assert b'SECRET' not in response.data
    assert all(kwargs['params']['path'].startswith('uploads/') for _, _, kwargs in calls)


@pytest.mark.parametrize('name', ['', '/etc/passwd', '../Documents/private.pdf', 'a/../../b.pdf', 'a//b', 'a\\b'])
def test_names_escaping_upload_folder_are_refused(name):
    with pytest.raises(StorageFileNotFound):
        stored_path(name)


def test_open_file_refuses_escaping_names_before_calling_provider(app, provider):
    with app.app_context():
        with pytest.raises(StorageFileNotFound):
            open_file('../Documents/private.pdf')

    assert provider[1] == []


def test_abandoned_stream_releases_provider_connection(app, provider):
    routes, _ = provider
    download = FakeResponse(content=b'x' * 200000, headers={'Content-Type': 'image/png'})
    routes[('GET', f'{API}/resources/download')] = FakeResponse(json_data={'href': 'https://downloader.yandex.net/f'})
    routes[('GET', 'https://downloader.yandex.net/f')] = download

    with app.app_context():
        _, chunks = open_file('big.png')
        next(chunks)
        chunks.close()

    assert download.closed is True


def test_proxy_missing_file(client, provider):
    response = client.get('/api/storage/files/nothing.png')

    assert response.status_code == 404
