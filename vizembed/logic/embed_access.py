"""Embed access decision.

Decides whether an embed may be rendered for a requester and which auth
tokens the page receives:

- PUBLIC and LINK embeds are always granted, with no tokens.
- PRIVATE embeds are granted only to an authenticated viewer with read
  permission on a visualization shared into an organization context; the
  page then carries the viewer's own tokens.
- PROTECTED embeds need the correct password; the page then carries the
  visualization's tokens.

The function is pure: it only reads its arguments.
"""

from __future__ import annotations

from typing import Optional

from vizembed.models.decision import AccessDecision, Denied, DenialReason, Granted
from vizembed.models.privacy import Privacy
from vizembed.models.visualization import Viewer, Visualization


def decide(
    visualization: Visualization,
    viewer: Viewer,
    supplied_password: Optional[str] = None,
) -> AccessDecision:
    """Return Granted(tokens) or Denied(reason) for one embed request.

    ``supplied_password`` is None when the request carried no password at all
    (a plain GET); an empty string counts as a supplied, wrong password.
    """
    privacy = visualization.privacy

    if privacy == Privacy.PRIVATE:
        if (
            viewer.is_authenticated
            and visualization.is_organization_shared()
            and visualization.has_read_permission(viewer)
        ):
            return Granted(tuple(viewer.get_auth_tokens()))
        return Denied(DenialReason.PRIVATE)

    if privacy == Privacy.PROTECTED:
        if supplied_password is None:
            return Denied(DenialReason.PASSWORD_REQUIRED)
        if not (visualization.has_password() and visualization.password_valid(supplied_password)):
            return Denied(DenialReason.INVALID_PASSWORD)
        return Granted(tuple(visualization.get_auth_tokens()))

    return Granted(())


__all__ = ["decide"]
