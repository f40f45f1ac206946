"""Resolution report serialization.

Turns a resolved ``ResolutionSession`` into a plain dict/list structure
that maps naturally to both JSON and YAML.

Usage
-----
::

    from loadorder.report import ReportSerializer

    serializer = ReportSerializer()
    data = serializer.to_dict(session)
    json_text = serializer.to_json(session)
"""
from __future__ import annotations

import json

import yaml

from loadorder.catalog.descriptor import PluginDescriptor
from loadorder.session.diagnostics import ResolutionIssue
from loadorder.session.session import ResolutionSession


class ReportSerializer:
    """Converts a ``ResolutionSession`` into a JSON-compatible report.

    Descriptors are listed in partition order; the ``accepted`` list is
    the load order.
    """

    def to_dict(self, session: ResolutionSession) -> dict[str, object]:
        """Serialize ``session`` to a JSON-compatible dict."""
        return {
            "summary": {
                "accepted": len(session.accepted),
                "disabled": len(session.disabled),
                "ignored": len(session.ignored),
            },
            "accepted": [self._descriptor_to_dict(d) for d in session.accepted],
            "disabled": [self._classified_to_dict(session, d) for d in session.disabled],
            "ignored": [self._classified_to_dict(session, d) for d in session.ignored],
            "issues": [self._issue_to_dict(i) for i in session.issues],
            "newly_disabled": list(session.newly_disabled),
        }

    def _descriptor_to_dict(self, d: PluginDescriptor) -> dict[str, object]:
        return {
            "id": d.id,
            "name": d.name,
            "version": str(d.version),
            "source": d.source,
            "bare": d.is_bare,
            "self": d.is_self,
            "dependencies": sorted(dep.identity for dep in d.resolved_dependencies),
            "features": [f.request.text for f in d.features if f.request is not None],
        }

    def _classified_to_dict(self, session: ResolutionSession, d: PluginDescriptor) -> dict[str, object]:
        data = self._descriptor_to_dict(d)
        reason = session.reason_for(d)
        data["reason"] = self._issue_to_dict(reason) if reason is not None else None
        return data

    def _issue_to_dict(self, issue: ResolutionIssue) -> dict[str, object]:
        return {
            "code": issue.code,
            "kind": issue.kind.name,
            "severity": issue.effective_severity.name,
            "plugin": issue.descriptor.identity,
            "message": issue.message,
            "related": issue.related.identity if issue.related is not None else None,
            "detail": issue.detail,
        }

    # ------------------------------------------------------------------
    # Text formats
    # ------------------------------------------------------------------

    def to_json(self, session: ResolutionSession, indent: int = 2) -> str:
        """Serialize ``session`` to a JSON string."""
        return json.dumps(self.to_dict(session), indent=indent, ensure_ascii=False)

    def to_yaml(self, session: ResolutionSession) -> str:
        """Serialize ``session`` to a YAML string."""
        return yaml.dump(
            self.to_dict(session), default_flow_style=False, allow_unicode=True, sort_keys=False
        )
