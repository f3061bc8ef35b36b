"""
RAG Gateway - multilingual routing to retrieval-augmented-generation backends.

This service coordinates the chat workflow by:
1. Discovering which (language, domain) modes each RAG backend serves
2. Resolving the mode for a prompt (explicitly or via the master backend)
3. Routing the prompt to the best-matching backend
4. Relaying the backend's streamed answer as incremental deltas
5. Persisting the final answer with its citations
"""

__version__ = "0.1.0"
