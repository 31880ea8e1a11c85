from typing import Any

from pydantic import BaseModel, Field

from .codes import RespCode


class ReturnResponse(BaseModel):
    """
    ReturnResponse 类。

    所有对外 IO 方法的统一返回结构。
    """
    code: int = Field(default=int(RespCode.OK), description='0 为成功, 其余见 RespCode')
    msg: str = Field(default='', description='可读的结果说明')
    data: Any = Field(default=None, description='业务数据或失败详情')

    @classmethod
    def ok(cls, msg: str = 'success', data: Any = None) -> 'ReturnResponse':
        """
        构造成功响应。

        Args:
            msg: msg 参数。
            data: data 参数。

        Returns:
            ReturnResponse: code 为 0 的响应。
        """
        return cls(code=int(RespCode.OK), msg=msg, data=data)

    @classmethod
    def fail(cls, code: RespCode, msg: str, data: Any = None) -> 'ReturnResponse':
        """
        构造失败响应。

        Args:
            code: code 参数。
            msg: msg 参数。
            data: data 参数。

        Returns:
            ReturnResponse: code 非 0 的响应。
        """
        return cls(code=int(code), msg=msg, data=data)

