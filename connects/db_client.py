from sqlalchemy import create_engine, text
from urllib.parse import quote_plus
from typing import Optional
import pandas as pd


class DBClient:
    """
    数据库读取客户端。url 为空时按 db_config（host/port/user/password/database）拼接 mysql+pymysql 连接串。
    engine 延迟创建，第一次查询时才建立连接池。
    """
    def __init__(self, url: Optional[str] = None, db_config: Optional[dict] = None):
        if url is None:
            if db_config is None:
                raise ValueError("DBClient requires either url or db_config")
            password_encoded = quote_plus(db_config["password"])
            url = (f"mysql+pymysql://{db_config['user']}:{password_encoded}"
                   f"@{db_config['host']}:{db_config['port']}/{db_config['database']}")
        self.url = url
        self._engine = None

    def _ensure_engine(self):
        if self._engine is None:
            self._engine = create_engine(self.url, pool_recycle=3600)

    def read_sql(self, sql: text, params: dict = None) -> pd.DataFrame:
        """
        通用接口：任意 SQL + 参数，返回 DataFrame
        """
        self._ensure_engine()
        params = params or {}
        return pd.read_sql(sql, self._engine, params=params)

    def read_table(self, table: str) -> pd.DataFrame:
        # 表名来自配置，不接受外部输入
        return self.read_sql(text(f"SELECT * FROM {table}"))

    def close(self):
        if self._engine is not None:
            try:
                self._engine.dispose()
            finally:
                self._engine = None
