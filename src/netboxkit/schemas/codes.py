from enum import IntEnum



class RespCode(IntEnum):
    """
    RespCode 类。

    ReturnResponse.code 的取值表, 0 表示成功。
    """
    OK = 0

    # 1xxx: caller input
    INVALID_PARAMS = 1001
    REQUIRED_FIELD_MISSING = 1002

    # 2xxx: netbox transport
    NETBOX_REQUEST_FAILED = 2001
    NETBOX_REQUEST_EXCEPTION = 2002
    NETBOX_BAD_PAYLOAD = 2003

    # 21xx: netbox orchestration
    PREREQUISITE_NOT_FOUND = 2101
