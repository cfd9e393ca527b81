"""三文件原子写入 -- data.json / data.json.backup / data.json.tmp

写入协议（顺序不可调整）：
1. 新内容写入 tmp 并 fsync
2. 主文件存在时：删除旧 backup，主文件 rename 为 backup
3. tmp rename 为主文件

2、3 两步均为原子 rename。任意时刻崩溃后磁盘上只可能是
"旧主文件 + 旧备份" 或 "新主文件 + 旧主文件作为备份"，不会出现写了一半的主文件。
本模块为同步实现，由 TodoStore 放到工作线程中执行并串行化。
"""

import contextlib
import os
from pathlib import Path

import structlog

from ..config import BACKUP_SUFFIX, DATA_FILE_NAME, TEMP_SUFFIX
from ..exceptions import PersistenceError

log = structlog.get_logger()


class DurableFile:
    """主文件 + 备份 + 临时文件的轮转写入"""

    def __init__(self, data_dir: Path, file_name: str = DATA_FILE_NAME) -> None:
        self.data_dir = data_dir
        self.primary_path = data_dir / file_name
        self.backup_path = data_dir / f"{file_name}{BACKUP_SUFFIX}"
        self.temp_path = data_dir / f"{file_name}{TEMP_SUFFIX}"

    def write(self, content: bytes) -> None:
        """按三步协议写入

        Raises:
            PersistenceError: 任一步骤失败；上一次成功写入的主文件保持不变
        """
        # Step 1: 写入临时文件
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(self.temp_path, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            self._discard_temp()
            raise PersistenceError(self.temp_path, e) from e

        # Step 2: 主文件 → 备份
        rotated = False
        if self.primary_path.exists():
            try:
                self.backup_path.unlink(missing_ok=True)
                os.replace(self.primary_path, self.backup_path)
            except OSError as e:
                self._discard_temp()
                raise PersistenceError(self.backup_path, e) from e
            rotated = True

        # Step 3: 临时文件 → 主文件
        try:
            os.replace(self.temp_path, self.primary_path)
        except OSError as e:
            self._discard_temp()
            if rotated:
                self._restore_primary()
            raise PersistenceError(self.primary_path, e) from e

        self._fsync_dir()

    def read(self, path: Path) -> bytes | None:
        """读取文件内容，文件不存在返回 None

        Raises:
            PersistenceError: 文件存在但无法读取
        """
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(path, e) from e

    def _discard_temp(self) -> None:
        with contextlib.suppress(OSError):
            self.temp_path.unlink(missing_ok=True)

    def _restore_primary(self) -> None:
        # 第 3 步失败后把上一次的主文件移回原位；移回也失败时由加载回退读取备份
        try:
            os.replace(self.backup_path, self.primary_path)
        except OSError as e:
            log.warning("durable_primary_restore_failed", path=str(self.primary_path), error=str(e))

    def _fsync_dir(self) -> None:
        # 目录 fsync 确保 rename 落盘；不支持的平台（Windows）忽略
        with contextlib.suppress(OSError):
            fd = os.open(self.data_dir, os.O_RDONLY)
            try:
                os.fsync(fd)
            finally:
                os.close(fd)
