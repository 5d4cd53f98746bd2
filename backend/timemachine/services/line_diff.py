"""行级差异算法 - Myers 最短编辑脚本"""
from dataclasses import dataclass
from typing import Dict, List

EQUAL = "equal"
INSERT = "insert"
DELETE = "delete"


@dataclass(frozen=True)
class DiffOp:
    """单行编辑操作"""
    op: str
    line: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.op, "line": self.line}


def split_lines(text: str) -> List[str]:
    """按行切分，统一换行符；空字符串返回空列表而不是一个空行"""
    if not text:
        return []
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    return normalized.split("\n")


def diff_lines(old_text: str, new_text: str) -> List[DiffOp]:
    """
    计算从旧文本到新文本的行级编辑脚本

    按深度 d 逐层扩展，每层记录对角线 k 上能到达的最远 x，
    在对角线上尽量沿相同行前进，到达右下角即停止。
    每层开始前保存一份前沿快照，供回溯使用。

    Args:
        old_text: 旧版本文本
        new_text: 新版本文本

    Returns:
        按旧→新顺序排列的操作列表
    """
    a = split_lines(old_text)
    b = split_lines(new_text)
    n, m = len(a), len(b)

    v: Dict[int, int] = {1: 0}
    trace: List[Dict[int, int]] = []

    for d in range(n + m + 1):
        trace.append(dict(v))

        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and v.get(k - 1, -1) < v.get(k + 1, -1)):
                x = v.get(k + 1, 0)
            else:
                x = v.get(k - 1, 0) + 1

            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1

            v[k] = x

            if x >= n and y >= m:
                return _backtrack(trace, a, b)

    return _backtrack(trace, a, b)


def _backtrack(trace: List[Dict[int, int]], a: List[str], b: List[str]) -> List[DiffOp]:
    """从终点沿前沿快照倒推出编辑路径"""
    x, y = len(a), len(b)
    ops: List[DiffOp] = []

    for d in range(len(trace) - 1, -1, -1):
        v = trace[d]
        k = x - y

        # 同分时优先视为插入，保证输出稳定
        if k == -d or (k != d and v.get(k - 1, -1) < v.get(k + 1, -1)):
            prev_k = k + 1
        else:
            prev_k = k - 1

        prev_x = v.get(prev_k, 0)
        prev_y = prev_x - prev_k

        while x > prev_x and y > prev_y:
            ops.append(DiffOp(EQUAL, a[x - 1]))
            x -= 1
            y -= 1

        if d == 0:
            break

        if x == prev_x:
            ops.append(DiffOp(INSERT, b[y - 1]))
            y -= 1
        else:
            ops.append(DiffOp(DELETE, a[x - 1]))
            x -= 1

    ops.reverse()
    return ops


def diff_stats(ops: List[DiffOp]) -> Dict[str, int]:
    """统计插入、删除、未变行数"""
    stats = {"inserted": 0, "deleted": 0, "unchanged": 0}
    for item in ops:
        if item.op == INSERT:
            stats["inserted"] += 1
        elif item.op == DELETE:
            stats["deleted"] += 1
        else:
            stats["unchanged"] += 1
    return stats
