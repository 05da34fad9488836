class GistDownloadError(Exception):
    """Raised when the requirements gist cannot be downloaded or parsed."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Gist content could not be downloaded from {url}: {reason}")

