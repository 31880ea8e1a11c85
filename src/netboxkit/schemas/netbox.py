import re
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from .codes import RespCode


DEFAULT_ROLE_COLOR = 'ff69b4'

COLOR_MAP = {
    'red': 'ff0000',
    'orange': 'ffa500',
    'yellow': 'ffff00',
    'green': '00ff00',
    'blue': '0000ff',
    'purple': '800080',
    'gray': '808080',
    'black': '000000',
}

_HEX_COLOR = re.compile(r'[0-9a-f]{6}')


def _require_text(value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise PydanticCustomError('blank_field', 'field is required and must not be empty')
    return value


class _Request(BaseModel):
    """
    _Request 类。

    各操作入参模型的基类, 未提供的必填字段也会被校验。
    """
    model_config = ConfigDict(validate_default=True, extra='forbid')


class DeviceRequest(_Request):
    name: Optional[str] = None
    device_role: Optional[str] = None
    manufacturer: Optional[str] = None
    device_type: Optional[str] = None
    site: Optional[str] = Field(default=None, description='None 表示不指定站点')

    _required = field_validator('name', 'device_role', 'manufacturer', 'device_type')(_require_text)

    @field_validator('site')
    @classmethod
    def _site_not_blank(cls, v: Optional[str]) -> Optional[str]:
        """
        站点可以不提供, 但提供时不能为空串。

        Args:
            v: v 参数。

        Returns:
            Any: 返回值。
        """
        if v is not None:
            _require_text(v)
        return v


class DeviceTypeRequest(_Request):
    model: Optional[str] = None
    manufacturer: Optional[str] = None
    u_height: int = Field(default=0, ge=0, description='机架单元数')

    _required = field_validator('model', 'manufacturer')(_require_text)


class DeviceRoleRequest(_Request):
    name: Optional[str] = None
    color: str = DEFAULT_ROLE_COLOR
    vm_role: bool = True

    _required = field_validator('name')(_require_text)

    @field_validator('color')
    @classmethod
    def _normalize_color(cls, v: str) -> str:
        """
        颜色统一为小写 6 位十六进制, 支持 COLOR_MAP 中的颜色名。

        Args:
            v: v 参数。

        Returns:
            str: 小写十六进制颜色。
        """
        color = v.strip().lower().lstrip('#')
        color = COLOR_MAP.get(color, color)
        if not _HEX_COLOR.fullmatch(color):
            raise ValueError(f'color must be 6 hex digits or one of {sorted(COLOR_MAP)}')
        return color


class NamedRequest(_Request):
    """manufacturer / site 这类只有名称的实体。"""
    name: Optional[str] = None

    _required = field_validator('name')(_require_text)


class InterfaceRequest(_Request):
    device: Optional[str] = None
    name: Optional[str] = None
    mac_address: Optional[str] = None
    description: Optional[str] = None
    form_factor: Optional[Union[int, str]] = None
    mtu: Optional[int] = Field(default=None, ge=1)
    enabled: Optional[bool] = None

    _required = field_validator('device', 'name')(_require_text)


class ConnectionRequest(_Request):
    device_a: Optional[str] = None
    interface_a: Optional[str] = None
    device_b: Optional[str] = None
    interface_b: Optional[str] = None

    _required = field_validator('device_a', 'interface_a', 'device_b', 'interface_b')(_require_text)


def validation_code(exc: ValidationError) -> RespCode:
    """
    把 ValidationError 映射到 RespCode。

    Args:
        exc: exc 参数。

    Returns:
        RespCode: 缺少必填字段时为 REQUIRED_FIELD_MISSING, 其余为 INVALID_PARAMS。
    """
    if any(error['type'] == 'blank_field' for error in exc.errors()):
        return RespCode.REQUIRED_FIELD_MISSING
    return RespCode.INVALID_PARAMS
