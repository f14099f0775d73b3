import logging
from pathlib import Path
from typing import Union
import pandas as pd

logger = logging.getLogger(__name__)


class CSVClient:
    """
    与 DBClient 对应的文件数据源：read_table(name) 读取 data_dir/name 的 CSV。
    所有列按字符串读取，数值/时间的解析交给 RecordLoader。
    """
    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def path_for(self, name: str) -> Path:
        return self.data_dir / name

    def read_table(self, name: str) -> pd.DataFrame:
        path = self.path_for(name)
        if not path.is_file():
            raise FileNotFoundError(f"Data file not found at: {path}")
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
        logger.debug("Loaded %d rows from %s", len(df), path)
        return df

    def close(self):
        # 文件数据源没有连接需要释放，保留与 DBClient 相同的接口
        pass
