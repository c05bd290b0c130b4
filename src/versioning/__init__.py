"""Runtime identity, ABI crosswalk, ABI tags and N-API support."""
