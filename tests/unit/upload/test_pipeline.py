"""Unit tests for upload.pipeline and upload.upload_config modules."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from src.platform_client.errors import APIUnreachableError, RemoteOperationError
from src.upload.errors import (
    AuthorizationDeniedError,
    FileTooLargeError,
    TransferCancelledError,
    TransferFailedError,
    UnsupportedTypeError,
)
from src.upload.models import LocalFile
from src.upload.pipeline import AUTHORIZE_PATH, UploadPipeline
from src.upload.upload_config import UPLOAD_CONFIG_PATH, UploadConfigCache, UploadPolicy

TICKET = {'upload_url': 'https://storage.example/put?sig=abc', 'file_key': 'materials/2026/notes.rar'}


def make_file(tmp_path, name, content=b'data', mime_type=None):
    path = tmp_path / name
    path.write_bytes(content)
    return LocalFile.from_path(path, mime_type=mime_type)


def make_api(ticket=TICKET):
    api = Mock()
    api.apost = AsyncMock(return_value=ticket)
    api.aget = AsyncMock(return_value=None)
    return api


def make_transport(status=200, percents=(0, 50, 100)):
    transport = Mock()

    def put(url, file, mime_type, callback, cancel_event):
        for percent in percents:
            if callback is not None:
                callback(percent)
        return status

    transport.put.side_effect = put
    return transport


class TestPrepare:
    """Local checks done before any request."""

    def test_unknown_extension_fails_without_network(self, tmp_path):
        api = make_api()
        transport = make_transport()
        notifier = Mock()
        pipeline = UploadPipeline(api, transport, notifier)

        with pytest.raises(UnsupportedTypeError) as exc_info:
            asyncio.run(pipeline.upload_file(make_file(tmp_path, 'notes.xyz')))

        assert exc_info.value.extension == '.xyz'
        api.apost.assert_not_called()
        api.aget.assert_not_called()
        transport.put.assert_not_called()
        notifier.error.assert_called_once()

    def test_file_over_configured_limit(self, tmp_path):
        api = make_api()
        api.aget = AsyncMock(return_value={'max_size': 3, 'allowed_types': ['pdf']})
        pipeline = UploadPipeline(api, make_transport(), Mock(), UploadConfigCache(api))

        with pytest.raises(FileTooLargeError) as exc_info:
            asyncio.run(pipeline.upload_file(make_file(tmp_path, 'big.pdf', b'12345')))

        assert exc_info.value.max_size == 3
        api.apost.assert_not_called()

    def test_no_size_check_without_config(self, tmp_path):
        pipeline = UploadPipeline(make_api(), make_transport(), Mock())

        mime_type = asyncio.run(pipeline.prepare(make_file(tmp_path, 'a.pdf', b'x' * 1000)))

        assert mime_type == 'application/pdf'


class TestAuthorize:
    """Phase 1: obtaining an upload ticket."""

    def test_rar_without_type_declares_rar_mime(self, tmp_path):
        api = make_api()
        pipeline = UploadPipeline(api, make_transport(), Mock())
        local = make_file(tmp_path, 'notes.rar', b'r' * 10)

        asyncio.run(pipeline.upload_file(local))

        api.apost.assert_awaited_once_with(
            AUTHORIZE_PATH,
            json={'file_name': 'notes.rar', 'file_size': 10, 'mime_type': 'application/x-rar-compressed'},
        )

    @pytest.mark.parametrize("name", ['a.pdf', 'b.docx', 'c.zip', 'd.PNG', 'e.csv'])
    def test_known_extension_always_sends_non_empty_type(self, tmp_path, name):
        api = make_api()
        pipeline = UploadPipeline(api, make_transport(), Mock())

        asyncio.run(pipeline.upload_file(make_file(tmp_path, name)))

        assert api.apost.call_args.kwargs['json']['mime_type']

    def test_backend_refusal(self, tmp_path):
        api = make_api()
        api.apost.side_effect = RemoteOperationError(40301, "Upload quota exceeded")
        transport = make_transport()
        notifier = Mock()
        pipeline = UploadPipeline(api, transport, notifier)

        with pytest.raises(AuthorizationDeniedError) as exc_info:
            asyncio.run(pipeline.upload_file(make_file(tmp_path, 'a.pdf')))

        assert exc_info.value.code == 40301
        assert exc_info.value.reason == "Upload quota exceeded"
        transport.put.assert_not_called()
        notifier.error.assert_called_once_with(str(exc_info.value))

    @pytest.mark.parametrize("code", ['invalid-type', 'quota-exceeded', 'too-large', None])
    def test_symbolic_refusal_codes_are_kept(self, tmp_path, code):
        api = make_api()
        api.apost.side_effect = RemoteOperationError(code, "Refused")
        pipeline = UploadPipeline(api, make_transport(), Mock())

        with pytest.raises(AuthorizationDeniedError) as exc_info:
            asyncio.run(pipeline.upload_file(make_file(tmp_path, 'a.pdf')))

        assert exc_info.value.code == code

    def test_unreachable_backend_is_denial(self, tmp_path):
        api = make_api()
        api.apost.side_effect = APIUnreachableError("https://api.example")
        pipeline = UploadPipeline(api, make_transport(), Mock())

        with pytest.raises(AuthorizationDeniedError):
            asyncio.run(pipeline.upload_file(make_file(tmp_path, 'a.pdf')))

    def test_missing_ticket_fields(self, tmp_path):
        pipeline = UploadPipeline(make_api(ticket={'upload_url': 'u'}), make_transport(), Mock())

        with pytest.raises(AuthorizationDeniedError) as exc_info:
            asyncio.run(pipeline.upload_file(make_file(tmp_path, 'a.pdf')))

        assert 'no upload ticket' in exc_info.value.reason


class TestTransfer:
    """Phase 2: writing the bytes."""

    def test_success_returns_storage_key_and_reports_progress(self, tmp_path):
        transport = make_transport(percents=(0, 30, 60, 100))
        pipeline = UploadPipeline(make_api(), transport, Mock())
        reported = []

        async def scenario():
            key = await pipeline.upload_file(make_file(tmp_path, 'notes.rar'), reported.append)
            # Progress is marshalled onto the loop; let the queued callbacks run
            await asyncio.sleep(0)
            return key

        key = asyncio.run(scenario())

        assert key == 'materials/2026/notes.rar'
        assert reported == [0, 30, 60, 100]
        assert pipeline.uploading is False
        assert pipeline.progress == 0
        args = transport.put.call_args.args
        assert args[0] == TICKET['upload_url']
        assert args[2] == 'application/x-rar-compressed'

    def test_non_2xx_status_fails(self, tmp_path):
        notifier = Mock()
        pipeline = UploadPipeline(make_api(), make_transport(status=403), notifier)

        with pytest.raises(TransferFailedError) as exc_info:
            asyncio.run(pipeline.upload_file(make_file(tmp_path, 'a.pdf')))

        assert exc_info.value.status_code == 403
        notifier.error.assert_called_once()
        assert pipeline.uploading is False

    def test_transport_error_propagates_as_transfer_failed(self, tmp_path):
        transport = Mock()
        transport.put.side_effect = TransferFailedError('a.pdf', 'network error (ConnectionError)')
        pipeline = UploadPipeline(make_api(), transport, Mock())

        with pytest.raises(TransferFailedError):
            asyncio.run(pipeline.upload_file(make_file(tmp_path, 'a.pdf')))

    def test_cancel_current_aborts_transfer(self, tmp_path):
        started = Mock()

        def put(url, file, mime_type, callback, cancel_event):
            started()
            if not cancel_event.wait(timeout=5):
                return 200
            raise TransferCancelledError(file.name)

        transport = Mock()
        transport.put.side_effect = put
        pipeline = UploadPipeline(make_api(), transport, Mock())

        async def scenario():
            task = asyncio.ensure_future(pipeline.upload_file(make_file(tmp_path, 'a.pdf')))
            while not started.called:
                await asyncio.sleep(0.01)
            assert pipeline.uploading is True
            assert pipeline.cancel_current() is True
            return await task

        with pytest.raises(TransferCancelledError):
            asyncio.run(scenario())

        assert pipeline.cancel_current() is False


class TestUploadFiles:
    """Sequential batch uploads."""

    def test_failed_file_does_not_stop_batch(self, tmp_path):
        api = make_api()
        api.apost.side_effect = [
            TICKET,
            RemoteOperationError(500, "storage busy"),
            {'upload_url': 'u3', 'file_key': 'k3'},
        ]
        files = [
            make_file(tmp_path, 'a.pdf'),
            make_file(tmp_path, 'b.pdf'),
            make_file(tmp_path, 'c.xyz'),
            make_file(tmp_path, 'd.zip'),
        ]
        pipeline = UploadPipeline(api, make_transport(), Mock())

        outcomes = asyncio.run(pipeline.upload_files(files))

        assert len(outcomes) == 4
        assert [o.index for o in outcomes] == [0, 1, 2, 3]
        assert [o.ok for o in outcomes] == [True, False, False, True]
        assert outcomes[0].storage_key == TICKET['file_key']
        assert isinstance(outcomes[1].error, AuthorizationDeniedError)
        assert isinstance(outcomes[2].error, UnsupportedTypeError)
        assert outcomes[3].storage_key == 'k3'
        assert api.apost.await_count == 3

    def test_files_are_uploaded_one_at_a_time(self, tmp_path):
        active = []
        peak = []

        def put(url, file, mime_type, callback, cancel_event):
            active.append(file.name)
            peak.append(len(active))
            active.remove(file.name)
            return 200

        transport = Mock()
        transport.put.side_effect = put
        files = [make_file(tmp_path, f'{i}.pdf') for i in range(3)]

        asyncio.run(UploadPipeline(make_api(), transport, Mock()).upload_files(files))

        assert [c.args[1].name for c in transport.put.call_args_list] == ['0.pdf', '1.pdf', '2.pdf']
        assert max(peak) == 1

    def test_batch_progress_carries_index(self, tmp_path):
        reported = []
        files = [make_file(tmp_path, 'a.pdf'), make_file(tmp_path, 'b.pdf')]
        pipeline = UploadPipeline(make_api(), make_transport(percents=(0, 100)), Mock())

        async def scenario():
            await pipeline.upload_files(files, lambda index, pct: reported.append((index, pct)))
            await asyncio.sleep(0)

        asyncio.run(scenario())

        assert (0, 100) in reported
        assert (1, 100) in reported
        assert all(index in (0, 1) for index, _ in reported)

    def test_empty_batch(self):
        assert asyncio.run(UploadPipeline(make_api(), make_transport()).upload_files([])) == []


class TestUploadConfig:
    """Test cases for UploadPolicy and UploadConfigCache."""

    def test_default_policy(self):
        policy = UploadPolicy()

        assert policy.max_size_mb == 50
        assert policy.accept == '.pdf,.docx,.doc,.pptx,.ppt,.zip,.rar'
        assert 'application/x-rar-compressed' in policy.allowed_mime_types

    def test_from_response_normalizes_extensions(self):
        policy = UploadPolicy.from_response({'max_size': 1024, 'allowed_types': ['.PDF', 'zip']})

        assert policy.max_size == 1024
        assert policy.allowed_types == ['pdf', 'zip']

    def test_accepts(self, tmp_path):
        policy = UploadPolicy(max_size=4)
        small = LocalFile(tmp_path, 'a.pdf', 4)
        big = LocalFile(tmp_path, 'b.exe', 5)

        assert policy.accepts_size(small) is True
        assert policy.accepts_size(big) is False
        assert policy.accepts_type(small) is True
        assert policy.accepts_type(big) is False

    def test_cache_loads_once(self):
        api = Mock()
        api.aget = AsyncMock(return_value={'max_size': 10 * 1024 * 1024, 'allowed_types': ['pdf']})
        cache = UploadConfigCache(api)

        async def scenario():
            await cache.load()
            return await cache.load()

        policy = asyncio.run(scenario())

        assert policy.max_size_mb == 10
        assert cache.loaded is True
        api.aget.assert_awaited_once_with(UPLOAD_CONFIG_PATH)

    def test_failed_load_keeps_defaults_and_retries(self):
        api = Mock()
        api.aget = AsyncMock(side_effect=[APIUnreachableError("x"), {'max_size': 1}])
        cache = UploadConfigCache(api)

        first = asyncio.run(cache.load())
        second = asyncio.run(cache.load())

        assert first == UploadPolicy()
        assert second.max_size == 1
        assert api.aget.await_count == 2

    def test_refresh_reloads(self):
        api = Mock()
        api.aget = AsyncMock(side_effect=[{'max_size': 1}, {'max_size': 2}])
        cache = UploadConfigCache(api)

        asyncio.run(cache.load())
        policy = asyncio.run(cache.refresh())

        assert policy.max_size == 2
