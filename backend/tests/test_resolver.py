"""
Tests for key -> URL resolution.
"""
from botocore.exceptions import ClientError

from app.storage.resolver import KeyResolver


class TestResolve:
    
    def test_empty_key_means_no_image(self, resolver):
        """Test an empty key resolves to an empty URL."""
        assert resolver.resolve("") == ""
        assert resolver.resolve(None) == ""
    
    def test_full_url_passes_through(self, resolver):
        """Test a full URL is returned unchanged."""
        assert resolver.resolve("https://x/y") == "https://x/y"
        assert resolver.resolve("http://legacy.example.com/a.jpg") == "http://legacy.example.com/a.jpg"
    
    def test_key_is_joined_to_public_base(self, resolver):
        """Test a key is appended to the public base URL."""
        assert resolver.resolve("folder/abc.jpg") == "https://cdn.example.com/folder/abc.jpg"
    
    def test_trailing_slash_on_base_is_ignored(self):
        """Test a trailing slash on the base does not double up."""
        resolver = KeyResolver(None, "https://cdn.example.com/")
        
        assert resolver.resolve("a.jpg") == "https://cdn.example.com/a.jpg"
    
    def test_no_network_calls(self, resolver, boto_client):
        """Test public resolution never touches storage."""
        resolver.resolve("folder/abc.jpg")
        
        assert boto_client.method_calls == []


class TestResolvePresigned:
    
    def test_signed_read_url(self, resolver, boto_client):
        """Test a presigned GET URL is minted with the given expiry."""
        url = resolver.resolve_presigned("photos/abc.jpg", expires_in=600)
        
        assert url.startswith("https://storage.test/test-bucket/photos/abc.jpg?")
        assert "X-Amz-Expires=600" in url
        boto_client.generate_presigned_url.assert_called_once_with(
            ClientMethod="get_object",
            Params={"Bucket": "test-bucket", "Key": "photos/abc.jpg"},
            ExpiresIn=600,
        )
    
    def test_falls_back_to_public_url_on_signing_failure(self, resolver, boto_client):
        """Test a signing failure falls back to the public URL."""
        boto_client.generate_presigned_url.side_effect = ClientError(
            {"Error": {"Code": "InvalidAccessKeyId", "Message": "bad key"}},
            "GeneratePresignedUrl",
        )
        
        url = resolver.resolve_presigned("photos/abc.jpg")
        
        assert url == "https://cdn.example.com/photos/abc.jpg"
    
    def test_full_url_is_not_signed(self, resolver, boto_client):
        """Test a full URL is never signed."""
        assert resolver.resolve_presigned("https://x/y") == "https://x/y"
        boto_client.generate_presigned_url.assert_not_called()
    
    def test_without_storage_uses_public_url(self):
        """Test a resolver without storage uses the public URL."""
        resolver = KeyResolver(None, "https://cdn.example.com")
        
        assert resolver.resolve_presigned("a.jpg") == "https://cdn.example.com/a.jpg"
