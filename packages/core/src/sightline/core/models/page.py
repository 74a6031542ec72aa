"""PageContext -- 当前页面的执行上下文（URL + User-Agent）"""

from urllib.parse import urlsplit

from pydantic import BaseModel, Field


class PageContext(BaseModel):
    """当前页面"""

    url: str = Field(description="页面完整 URL")
    user_agent: str = Field(default="", description="User-Agent 字符串")

    @property
    def scheme(self) -> str:
        """协议，带冒号（如 "https:"）"""
        scheme = urlsplit(self.url).scheme
        return f"{scheme.lower()}:" if scheme else ""

    @property
    def hostname(self) -> str:
        return (urlsplit(self.url).hostname or "").lower()

    @property
    def search(self) -> str:
        """查询串，带前导 "?"，无查询时为空串"""
        query = urlsplit(self.url).query
        return f"?{query}" if query else ""
