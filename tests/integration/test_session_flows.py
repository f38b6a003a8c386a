"""Integration tests for whole user flows through a Session."""

import asyncio

import pytest

from src.platform_client.errors import InvalidCredentialsError, RemoteOperationError
from src.upload.errors import AuthorizationDeniedError, TransferFailedError, UnsupportedTypeError
from src.upload.models import LocalFile
from tests.fixtures.sample_entities import list_payload, material, notification


class TestNotificationFlow:
    """Fetching and optimistically updating the inbox."""

    def test_fetch_then_mark_read(self, backend, session):
        backend.route('GET', '/notifications', list_payload([notification(1), notification(2)], total=3, size=2))
        backend.route('GET', '/notifications/unread/count', 3)
        backend.route('POST', '/notifications/1/read', None)
        inbox = session.notifications

        async def flow():
            await inbox.fetch()
            await inbox.fetch_unread_count()
            await inbox.mark_as_read(1)

        asyncio.run(flow())

        assert inbox.store.find(1)['status'] == 'read'
        assert inbox.unread_count == 2
        assert backend.calls('GET', '/notifications')[0]['params'] == {'page': 1, 'size': 2}

    def test_refused_delete_is_rolled_back(self, backend, session):
        backend.route('GET', '/notifications', list_payload([notification(1), notification(2)], total=3, size=2))
        backend.route('DELETE', '/notifications/2', code=20004, message="Notification not found")
        inbox = session.notifications
        asyncio.run(inbox.fetch())

        with pytest.raises(RemoteOperationError) as exc_info:
            asyncio.run(inbox.delete(2))

        assert exc_info.value.message == "Notification not found"
        assert inbox.store.ids() == [1, 2]
        assert inbox.store.total == 3

    def test_expired_token(self, backend, session):
        backend.route('GET', '/notifications', code=40101, message="Token expired")

        with pytest.raises(InvalidCredentialsError):
            asyncio.run(session.notifications.fetch())


class TestFavoriteFlow:
    def test_search_then_favorite_rollback(self, backend, session):
        backend.route('GET', '/search', list_payload([material(7, favorite_count=4)], total=1))
        backend.route('POST', '/materials/7/favorite', code=40001, message="Favorite limit reached")

        async def flow():
            await session.search.search('thermodynamics')
            await session.search.toggle_favorite(7)

        with pytest.raises(RemoteOperationError):
            asyncio.run(flow())

        listed = session.search.store.find(7)
        assert listed['is_favorited'] is False
        assert listed['favorite_count'] == 4
        assert backend.calls('GET', '/search')[0]['params']['page_size'] == 2


class TestUploadFlow:
    """Authorize with the backend, then PUT to storage."""

    @pytest.fixture
    def files(self, tmp_path):
        def make(name, content=b'0123456789'):
            path = tmp_path / name
            path.write_bytes(content)
            return LocalFile.from_path(path)
        return make

    def test_rar_upload_reaches_storage(self, backend, storage, session, files):
        backend.route('GET', '/system/upload-config', {'max_size': 1024, 'allowed_types': ['rar']})
        backend.route('POST', '/materials/upload-authorize', {
            'upload_url': 'https://storage.example/b/notes.rar?sig=1',
            'file_key': 'materials/notes.rar',
        })
        reported = []

        key = asyncio.run(session.uploads.upload_file(files('notes.rar'), reported.append))

        assert key == 'materials/notes.rar'
        body, content_type = storage['objects']['https://storage.example/b/notes.rar?sig=1']
        assert body == b'0123456789'
        assert content_type == 'application/x-rar-compressed'
        assert backend.calls('POST', '/materials/upload-authorize')[0]['json']['mime_type'] == (
            'application/x-rar-compressed'
        )
        assert reported[-1] == 100

    def test_batch_with_mixed_failures(self, backend, storage, session, files):
        backend.route('GET', '/system/upload-config', {'max_size': 5})
        backend.route('POST', '/materials/upload-authorize', {'upload_url': 'https://s/x?sig=2', 'file_key': 'k'})

        outcomes = asyncio.run(session.uploads.upload_files([
            files('small.pdf', b'abc'),
            files('huge.pdf', b'0123456789'),
            files('weird.xyz', b'a'),
            files('also.zip', b'ab'),
        ]))

        assert [o.ok for o in outcomes] == [True, False, False, True]
        assert len(backend.calls('POST', '/materials/upload-authorize')) == 2
        assert isinstance(outcomes[2].error, UnsupportedTypeError)

    def test_authorization_refused(self, backend, storage, session, files):
        backend.route('POST', '/materials/upload-authorize', code=40301, message="Upload quota exceeded")

        with pytest.raises(AuthorizationDeniedError) as exc_info:
            asyncio.run(session.uploads.upload_file(files('a.pdf')))

        assert exc_info.value.code == 40301
        assert storage['objects'] == {}

    def test_symbolic_refusal_does_not_stop_batch(self, backend, storage, session, files):
        answers = iter([
            (200, {'code': 'quota-exceeded', 'message': "Upload quota exceeded", 'data': None}),
            (200, {'code': 0, 'message': 'success', 'data': {'upload_url': 'https://s/z?sig=4', 'file_key': 'k2'}}),
        ])
        backend.route_handler('POST', '/materials/upload-authorize', lambda request: next(answers))

        outcomes = asyncio.run(session.uploads.upload_files([files('a.pdf'), files('b.pdf')]))

        assert len(outcomes) == 2
        assert isinstance(outcomes[0].error, AuthorizationDeniedError)
        assert outcomes[0].error.code == 'quota-exceeded'
        assert outcomes[0].error.reason == "Upload quota exceeded"
        assert outcomes[1].storage_key == 'k2'

    def test_storage_refuses_write(self, backend, storage, session, files):
        backend.route('POST', '/materials/upload-authorize', {'upload_url': 'https://s/y?sig=3', 'file_key': 'k'})
        storage['status'] = 403

        with pytest.raises(TransferFailedError) as exc_info:
            asyncio.run(session.uploads.upload_file(files('a.pdf')))

        assert exc_info.value.status_code == 403
        assert session.uploads.uploading is False


class TestLogoutFlow:
    def test_logout_clears_stores_and_notifies_backend(self, backend, session):
        backend.route('GET', '/admin/materials/pending', list_payload([material(1)], total=1))
        backend.route('POST', '/auth/logout', None)

        async def flow():
            await session.review_queue.fetch()
            session.logout()
            assert session.review_queue.store.items == []
            await session.background.drain()

        asyncio.run(flow())

        assert len(backend.calls('POST', '/auth/logout')) == 1

    def test_logout_survives_backend_failure(self, backend, session):
        async def flow():
            session.logout()
            await session.background.drain()

        asyncio.run(flow())

        assert len(backend.calls('POST', '/auth/logout')) == 1
