# vitb_energy/api/deps.py

from fastapi import Request

from vitb_energy.services.session import PollerSession


def get_session(request: Request) -> PollerSession:
    """The poller session owned by the running app."""
    return request.app.state.session
