"""Link shortener with random short paths and asynchronous follow logging."""
