"""
Core of ontolite: the OWL 2 data model, Manchester-syntax parsing and
rendering, the reasoner adapter, explanations and the session facade.

Import submodules directly (``from core.session import get_session``); the
package itself imports nothing so that the reasoner and storage packages can
depend on ``core.model`` without cycles.
"""
