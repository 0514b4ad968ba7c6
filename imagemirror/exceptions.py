class ImageMirrorFailure(Exception):
    """
    Raised when a downloaded or uploaded image fails verification.

    The fetcher and the storage gateway raise and catch this internally so the
    failure is logged with a concise reason and reported to the caller as a
    missing result rather than an exception.
    """

    pass
