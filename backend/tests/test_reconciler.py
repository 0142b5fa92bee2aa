"""
Tests for the upload session state machine and the reconciler that
commits or discards provisionally owned keys.
"""
import asyncio

import pytest
from botocore.exceptions import ClientError

from app.errors import InvalidTransitionError, StorageDeleteError
from app.uploads import (
    FilePayload,
    ObjectLifecycleReconciler,
    TransferExecutor,
    UploadSession,
    UploadState,
)


def make_reconciler(issuer, caller, records=None):
    async def remove_object(key):
        return issuer.delete_object(caller, key)
    
    async def create_record(key, metadata):
        records.append((key, metadata))
        return {"key": key, **metadata}
    
    return ObjectLifecycleReconciler(
        remove_object,
        create_record if records is not None else None,
    )


def uploaded_session(key: str = "photos/abc-cat.png") -> UploadSession:
    session = UploadSession(folder="photos")
    session.start()
    session.mark_uploaded(key)
    return session


class TestUploadSession:
    
    def test_happy_path(self):
        """Test a session moves from empty to uploaded."""
        session = UploadSession()
        assert session.state is UploadState.EMPTY
        
        session.start()
        session.update_progress(40)
        session.update_progress(30)
        assert session.progress == 40
        
        session.mark_uploaded("photos/a.png")
        assert session.state is UploadState.UPLOADED
        assert session.key == "photos/a.png"
        assert session.progress == 100
    
    def test_failed_session_can_reset(self):
        """Test a failed session resets to empty."""
        session = UploadSession()
        session.start()
        session.mark_failed("Upload failed with status 403")
        
        assert session.error == "Upload failed with status 403"
        session.reset()
        
        assert session.state is UploadState.EMPTY
        assert session.key is None
        assert session.error is None
    
    def test_terminal_states(self):
        """Test a committed session cannot move again."""
        session = uploaded_session()
        session.mark_committed()
        
        assert session.is_terminal
        with pytest.raises(InvalidTransitionError):
            session.mark_discarded()
    
    def test_cannot_upload_twice_without_reset(self):
        """Test an uploading session cannot start again."""
        session = UploadSession()
        session.start()
        
        with pytest.raises(InvalidTransitionError):
            session.start()


class TestDiscard:
    
    @pytest.mark.asyncio
    async def test_issue_transfer_discard(self, issuer, caller, boto_client, storage_http, storage_requests):
        """A file uploaded then replaced is deleted from storage."""
        issued = issuer.issue_write_credential(caller, "cat.png", "image/png", 1000, "photos")
        session = UploadSession(folder="photos")
        reconciler = make_reconciler(issuer, caller)
        executor = TransferExecutor(http_client=storage_http)
        
        session.start()
        await executor.transfer(
            FilePayload("cat.png", "image/png", b"\x00" * 1000),
            issued.credential,
            on_progress=session.update_progress,
        )
        reconciler.on_transfer_succeeded(session, issued.key)
        
        assert len(storage_requests) == 1
        assert session.progress == 100
        
        assert await reconciler.discard(session) is True
        
        assert session.state is UploadState.DISCARDED
        boto_client.delete_object.assert_called_once_with(Bucket="test-bucket", Key=issued.key)
    
    @pytest.mark.asyncio
    async def test_second_discard_is_noop(self, issuer, caller, boto_client):
        """Test a second discard sends no delete."""
        session = uploaded_session()
        reconciler = make_reconciler(issuer, caller)
        
        assert await reconciler.discard(session) is True
        assert await reconciler.discard(session) is False
        
        assert boto_client.delete_object.call_count == 1
    
    @pytest.mark.asyncio
    async def test_failed_delete_keeps_session_uploaded(self, issuer, caller, boto_client):
        """Test a failed delete keeps the session retryable."""
        boto_client.delete_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}},
            "DeleteObject",
        )
        session = uploaded_session()
        reconciler = make_reconciler(issuer, caller)
        
        with pytest.raises(StorageDeleteError):
            await reconciler.discard(session)
        
        assert session.state is UploadState.UPLOADED
        
        boto_client.delete_object.side_effect = None
        assert await reconciler.discard(session) is True
    
    @pytest.mark.asyncio
    async def test_already_deleted_object_discards_cleanly(self, issuer, caller, boto_client):
        """Test discarding an already-missing object succeeds."""
        boto_client.delete_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchKey", "Message": "gone"}},
            "DeleteObject",
        )
        session = uploaded_session()
        
        assert await make_reconciler(issuer, caller).discard(session) is True
        assert session.state is UploadState.DISCARDED
    
    @pytest.mark.asyncio
    async def test_failed_upload_is_not_deleted(self, issuer, caller, boto_client):
        """Test a failed upload cannot be discarded."""
        session = UploadSession()
        session.start()
        make_reconciler(issuer, caller).on_transfer_failed(session, RuntimeError("boom"))
        
        with pytest.raises(InvalidTransitionError):
            await make_reconciler(issuer, caller).discard(session)
        
        boto_client.delete_object.assert_not_called()


class TestCommit:
    
    @pytest.mark.asyncio
    async def test_commit_creates_record(self, issuer, caller):
        """Test commit hands key and metadata to the record store."""
        records = []
        session = uploaded_session()
        reconciler = make_reconciler(issuer, caller, records)
        
        record = await reconciler.commit(session, {"title": "Cat"})
        
        assert record == {"key": "photos/abc-cat.png", "title": "Cat"}
        assert records == [("photos/abc-cat.png", {"title": "Cat"})]
        assert session.state is UploadState.COMMITTED
    
    @pytest.mark.asyncio
    async def test_committed_key_is_never_deleted(self, issuer, caller, boto_client):
        """Test a committed key cannot be discarded."""
        session = uploaded_session()
        reconciler = make_reconciler(issuer, caller, [])
        await reconciler.commit(session)
        
        with pytest.raises(InvalidTransitionError):
            await reconciler.discard(session)
        
        boto_client.delete_object.assert_not_called()
    
    @pytest.mark.asyncio
    async def test_discarded_key_cannot_be_committed(self, issuer, caller):
        """Test a discarded key cannot be committed."""
        records = []
        session = uploaded_session()
        reconciler = make_reconciler(issuer, caller, records)
        await reconciler.discard(session)
        
        with pytest.raises(InvalidTransitionError):
            await reconciler.commit(session)
        
        assert records == []
    
    @pytest.mark.asyncio
    async def test_double_commit_rejected(self, issuer, caller):
        """Test a second commit creates no second record."""
        records = []
        session = uploaded_session()
        reconciler = make_reconciler(issuer, caller, records)
        await reconciler.commit(session)
        
        with pytest.raises(InvalidTransitionError):
            await reconciler.commit(session)
        
        assert len(records) == 1
    
    @pytest.mark.asyncio
    async def test_concurrent_commit_and_discard_reach_one_outcome(self, issuer, caller, boto_client):
        """Test racing commit and discard settle on one terminal state."""
        records = []
        session = uploaded_session()
        reconciler = make_reconciler(issuer, caller, records)
        
        results = await asyncio.gather(
            reconciler.commit(session),
            reconciler.discard(session),
            return_exceptions=True,
        )
        
        failures = [r for r in results if isinstance(r, InvalidTransitionError)]
        assert len(failures) == 1
        if session.state is UploadState.COMMITTED:
            assert len(records) == 1
            boto_client.delete_object.assert_not_called()
        else:
            assert session.state is UploadState.DISCARDED
            assert records == []
    
    @pytest.mark.asyncio
    async def test_commit_without_record_store(self, issuer, caller):
        """Test commit needs a record store."""
        with pytest.raises(RuntimeError):
            await make_reconciler(issuer, caller).commit(uploaded_session())
