# app/domain/errors.py


class DuplicateProductError(Exception):
    """Insert/rename rejected because a product with the same name already exists."""

    def __init__(self, name: str):
        super().__init__(f'Product "{name}" already exists')
        self.name = name


class DuplicateDeviceError(Exception):
    def __init__(self, token: str):
        super().__init__("Device token already registered")
        self.token = token


class UploadRejected(Exception):
    """Pre-flight rejection of an upload; aborts the whole request."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
