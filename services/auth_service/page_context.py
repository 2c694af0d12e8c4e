"""
Page context - which paper the chat page is about.
"""

from typing import Mapping, Optional

from config.app_config import ChatConfig


class PageContext:
    """Reads the target paper id from the page's query string"""

    def __init__(self, config: Optional[ChatConfig] = None,
                 query_params: Optional[Mapping[str, str]] = None):
        self.config = config or ChatConfig()
        self._query_params = query_params

    @property
    def query_params(self) -> Mapping[str, str]:
        if self._query_params is None:
            import streamlit as st
            return st.query_params
        return self._query_params

    def get_paper_id(self) -> str:
        """Paper id from `?paperId=`, or the configured default when unset"""
        paper_id = self.query_params.get(self.config.paper_query_param)
        if isinstance(paper_id, list):
            paper_id = paper_id[0] if paper_id else None
        return paper_id or self.config.default_paper_id
