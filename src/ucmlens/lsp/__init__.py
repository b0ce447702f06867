"""Language Server Protocol front end for ucmlens.

Exposes hover, completion, definition and signature help for Unison
scratch files to any LSP client over stdio.

Usage:
    ucmlens serve                      # Start the language server
    ucmlens serve --project myproj     # With an explicit project scope
"""

from ucmlens.lsp.server import LSPServer

__all__ = ["LSPServer"]
