# client_py/src/locus_client/errors.py

class ClientError(Exception):
    """Base exception for session-layer errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Specific error codes
CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
CONNECTION_FAILED = "CONNECTION_FAILED"
NOT_CONNECTED = "NOT_CONNECTED"
REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
SERVER_REJECTED = "SERVER_REJECTED"
SESSION_RESUME_FAILURE = "SESSION_RESUME_FAILURE"
PROTOCOL_ERROR = "PROTOCOL_ERROR"


class ConnectionTimeout(ClientError):
    """No connect acknowledgment arrived within the connect window."""
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(CONNECTION_TIMEOUT, f"No connection to server within {timeout:g}s")


class ConnectionFailed(ClientError):
    """The transport refused the connection outright."""
    def __init__(self, reason: str):
        super().__init__(CONNECTION_FAILED, f"Cannot connect to server: {reason}")


class NotConnected(ClientError):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(NOT_CONNECTED, f"Not connected to server ({operation})")


class RequestTimeout(ClientError):
    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(REQUEST_TIMEOUT, f"Server did not answer {operation} within {timeout:g}s")


class ServerRejected(ClientError):
    """The server acknowledged the call with success=false."""
    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(SERVER_REJECTED, message)


class SessionResumeFailure(ClientError):
    def __init__(self, session_id: str, reason: str):
        self.session_id = session_id
        super().__init__(SESSION_RESUME_FAILURE, f"Could not resume session {session_id}: {reason}")


class ProtocolError(ClientError):
    """Inbound payload or acknowledgment did not have the expected shape."""
    def __init__(self, message: str):
        super().__init__(PROTOCOL_ERROR, message)
