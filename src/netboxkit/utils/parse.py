from typing import Any, Dict, List, Optional


class Parse:

    """
    Parse 类。

    NetBox 请求参数与响应数据的整理工具。
    """
    @staticmethod
    def remove_dict_none_value(data: dict) -> dict:
        """
        去掉值为 None 的键。

        Args:
            data: data 参数。

        Returns:
            dict: 新字典, 原字典不变。
        """
        return {k: v for k, v in data.items() if v is not None}

    @staticmethod
    def single_filter(filters: Dict[str, Any]) -> Dict[str, Any]:
        """
        校验最多只提供了一个过滤字段。

        Args:
            filters: 候选过滤字段, 未提供的值为 None。

        Returns:
            dict: 去掉 None 后的过滤字段 (0 或 1 个)。

        Raises:
            ValueError: 同时提供了多个过滤字段。
        """
        cleaned = Parse.remove_dict_none_value(filters)
        if len(cleaned) > 1:
            raise ValueError(f"only one filter may be supplied, got {sorted(cleaned)}")
        return cleaned

    @staticmethod
    def results_of(payload: Any) -> Optional[List[Dict[str, Any]]]:
        """
        取出分页结构中的 results 列表。

        Args:
            payload: 已解码的 JSON。

        Returns:
            list | None: results 列表, 结构不符时返回 None。
        """
        if not isinstance(payload, dict):
            return None
        results = payload.get("results")
        if not isinstance(results, list):
            return None
        return [item for item in results if isinstance(item, dict)]
