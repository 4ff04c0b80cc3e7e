"""Sample application scanned and assembled by the tests."""
