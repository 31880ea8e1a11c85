#!/usr/bin/env python3

"""NetBox client: entity resolvers and resolve-or-create orchestration."""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar, Union

import requests
from pydantic import ValidationError
from requests import Response
from requests.exceptions import RequestException

from ..schemas.codes import RespCode
from ..schemas.netbox import (
    DEFAULT_ROLE_COLOR,
    ConnectionRequest,
    DeviceRequest,
    DeviceRoleRequest,
    DeviceTypeRequest,
    InterfaceRequest,
    NamedRequest,
    validation_code,
)
from ..schemas.response import ReturnResponse
from ..utils.parse import Parse
from ..utils.slug import slugify
from .request import build_headers, build_url

RequestModel = TypeVar("RequestModel")

MANUFACTURERS_API = "/dcim/manufacturers/"
DEVICE_TYPES_API = "/dcim/device-types/"
DEVICE_ROLES_API = "/dcim/device-roles/"
SITES_API = "/dcim/sites/"
DEVICES_API = "/dcim/devices/"
INTERFACES_API = "/dcim/interfaces/"
INTERFACE_CONNECTIONS_API = "/dcim/interface-connections/"
IP_ADDRESSES_API = "/ipam/ip-addresses/"


class NetboxClient:
    """Create/read client for the NetBox REST API.

    Every public method returns a ``ReturnResponse``. ``code == 0`` means
    success; resolvers put a list of records in ``data`` (possibly empty),
    creators put the created record in ``data``.

    The ``add_*`` orchestrators resolve each prerequisite by its identifying
    field, create it when absent and resolve it again to learn its id. The
    read-then-write pair is not atomic: two callers adding the same missing
    prerequisite at the same time can both observe it as absent and both
    POST it. A creation rejected by NetBox because the object already exists
    is treated as "created by someone else" and re-resolved, so the race only
    yields duplicates where NetBox itself enforces no uniqueness.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Union[int, float] = 10,
        slug_transliterate: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize a NetBox client.

        Args:
            url: NetBox REST root, e.g. ``https://netbox.example.com/api``.
            token: NetBox API token. Requests are sent unauthenticated without it.
            timeout: HTTP timeout in seconds, handed to ``requests`` unchanged.
            slug_transliterate: Transliterate CJK names to pinyin before slugging.
            logger: Optional logger instance.
        """
        self.url = (url or "").rstrip("/")
        self.token = token or None
        self.timeout = timeout
        self.slug_transliterate = slug_transliterate
        self.logger = logger or logging.getLogger(__name__)
        self.headers = build_headers(self.token)

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        logger: Optional[logging.Logger] = None,
    ) -> "NetboxClient":
        """Build a client from a loaded config dict.

        Reads the ``netbox`` table when present, otherwise the top level.
        ``NETBOX_URL`` and ``NETBOX_TOKEN`` fill missing values.

        Args:
            config: Config, usually from ``load_config_by_file``.
            logger: Optional logger instance.

        Returns:
            NetboxClient: Configured client.
        """
        section = config.get("netbox", config)
        return cls(
            url=section.get("url") or os.environ.get("NETBOX_URL"),
            token=section.get("token") or os.environ.get("NETBOX_TOKEN"),
            timeout=section.get("timeout", 10),
            slug_transliterate=bool(section.get("slug_transliterate", False)),
            logger=logger,
        )

    def _ok(self, msg: str, data: Any = None) -> ReturnResponse:
        return ReturnResponse.ok(msg=msg, data=data)

    def _fail(self, code: RespCode, msg: str, data: Any = None) -> ReturnResponse:
        return ReturnResponse.fail(code, msg, data)

    def _slug(self, text: str) -> str:
        return slugify(text, transliterate=self.slug_transliterate)

    def _validate(
        self,
        model: Type[RequestModel],
        /,
        **fields: Any,
    ) -> Tuple[Optional[RequestModel], Optional[ReturnResponse]]:
        """Validate operation arguments before any request is sent.

        Args:
            model: Request model class.
            **fields: Raw operation arguments.

        Returns:
            tuple: ``(instance, None)`` on success, ``(None, failure)`` otherwise.
        """
        try:
            return model(**fields), None
        except ValidationError as exc:
            return None, self._fail(
                validation_code(exc),
                f"{model.__name__} validation failed",
                data=exc.errors(include_url=False, include_context=False),
            )

    def _safe_json(self, response: Response) -> Any:
        """Parse response JSON safely.

        Args:
            response: HTTP response.

        Returns:
            Any: Parsed JSON payload or a text wrapper dict.
        """
        try:
            return response.json()
        except ValueError:
            return {"text": response.text}

    def _log_step(self, task_id: str, target: str, result: str, start_ts: float) -> None:
        """Emit key-step logs for external calls.

        Args:
            task_id: Correlation identifier.
            target: Request target.
            result: Execution result.
            start_ts: Monotonic start timestamp.
        """
        duration_ms = int((time.monotonic() - start_ts) * 1000)
        self.logger.info(
            "task_id=%s target=%s result=%s duration_ms=%s",
            task_id,
            target,
            result,
            duration_ms,
        )

    def _request(
        self,
        method: str,
        api_url: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
    ) -> ReturnResponse:
        """Send one HTTP request. Failures are reported, never retried.

        Args:
            method: HTTP method.
            api_url: Resource path below the REST root.
            params: Optional query params, percent-encoded into the URL.
            json_data: Optional JSON payload.

        Returns:
            ReturnResponse: Decoded body on 2xx, failure details otherwise.
        """
        if not self.url:
            return self._fail(RespCode.INVALID_PARAMS, "netbox url is not configured")

        method_upper = method.upper()
        task_id = uuid.uuid4().hex[:8]
        start_ts = time.monotonic()
        try:
            response = requests.request(
                method=method_upper,
                url=build_url(self.url, api_url, params),
                headers=self.headers,
                json=json_data,
                timeout=self.timeout,
            )
        except RequestException as exc:
            self._log_step(task_id, api_url, "exception", start_ts)
            return self._fail(
                RespCode.NETBOX_REQUEST_EXCEPTION,
                f"{method_upper} {api_url} exception",
                data={"target": api_url, "err": str(exc)},
            )

        payload = self._safe_json(response)
        if 200 <= response.status_code < 300:
            self._log_step(task_id, api_url, "ok", start_ts)
            return self._ok(msg=f"{method_upper} {api_url} success", data=payload)

        self._log_step(task_id, api_url, "fail", start_ts)
        return self._fail(
            RespCode.NETBOX_REQUEST_FAILED,
            f"{method_upper} {api_url} failed",
            data={"target": api_url, "http_status": response.status_code, "err": payload},
        )

    def _list(
        self,
        api_url: str,
        resource_name: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> ReturnResponse:
        """GET the first page of a collection and return its ``results``.

        Args:
            api_url: Collection path.
            resource_name: Resource label for messages.
            params: Query filters.

        Returns:
            ReturnResponse: List of records in ``data``.
        """
        response = self._request("GET", api_url, params=params)
        if response.code != 0:
            return response

        results = Parse.results_of(response.data)
        if results is None:
            return self._fail(
                RespCode.NETBOX_BAD_PAYLOAD,
                f"{resource_name} list payload is invalid",
                data=response.data,
            )
        return self._ok(msg=f"{resource_name} fetched", data=results)

    def _list_filtered(
        self,
        api_url: str,
        resource_name: str,
        **filters: Optional[str],
    ) -> ReturnResponse:
        """List a collection filtered by at most one identifying field."""
        try:
            params = Parse.single_filter(filters)
        except ValueError as exc:
            return self._fail(RespCode.INVALID_PARAMS, str(exc), data=filters)
        return self._list(api_url, resource_name, params)

    def _create(
        self,
        api_url: str,
        payload: Dict[str, Any],
        resource_name: str,
        resource_key: str,
    ) -> ReturnResponse:
        """POST a new NetBox resource.

        Args:
            api_url: Collection path.
            payload: Request payload.
            resource_name: Resource label.
            resource_key: Resource key text for logs/messages.

        Returns:
            ReturnResponse: Created record in ``data``.
        """
        response = self._request("POST", api_url, json_data=payload)
        if response.code != 0:
            return self._fail(
                RespCode(response.code),
                f"{resource_name} [{resource_key}] create failed",
                data=response.data,
            )
        return self._ok(
            msg=f"{resource_name} [{resource_key}] created successfully",
            data=response.data,
        )

    def _is_already_exists(self, response: ReturnResponse) -> bool:
        """Whether a failed create was rejected because the object exists."""
        if response.code != RespCode.NETBOX_REQUEST_FAILED or not isinstance(response.data, dict):
            return False
        if response.data.get("http_status") != 400:
            return False
        body = json.dumps(response.data.get("err"), ensure_ascii=False).lower()
        return "already exists" in body

    def _first_id(self, response: ReturnResponse, resource_name: str, resource_key: str) -> ReturnResponse:
        """Turn a resolver response into the id of its first record."""
        if response.code != 0:
            return response
        if not response.data:
            return self._fail(
                RespCode.PREREQUISITE_NOT_FOUND,
                f"{resource_name} [{resource_key}] not found",
            )
        resolved_id = response.data[0].get("id")
        if resolved_id is None:
            return self._fail(
                RespCode.NETBOX_BAD_PAYLOAD,
                f"{resource_name} [{resource_key}] has no id",
                data=response.data[0],
            )
        return self._ok(msg=f"{resource_name} [{resource_key}] found", data=resolved_id)

    def _resolve_or_create(
        self,
        resource_name: str,
        resource_key: str,
        resolver: Callable[[], ReturnResponse],
        creator: Callable[[], ReturnResponse],
    ) -> ReturnResponse:
        """Resolve a prerequisite, creating it first when it is absent.

        Args:
            resource_name: Resource label.
            resource_key: Identifying value, for logs/messages.
            resolver: Lookup by identifying field.
            creator: Creation call, issued at most once.

        Returns:
            ReturnResponse: Resolved id in ``data``.
        """
        found = self._first_id(resolver(), resource_name, resource_key)
        if found.code != RespCode.PREREQUISITE_NOT_FOUND:
            return found

        self.logger.info("%s [%s] not found, creating", resource_name, resource_key)
        created = creator()
        if created.code != 0:
            if not self._is_already_exists(created):
                return created
            self.logger.info("%s [%s] already exists, resolving again", resource_name, resource_key)

        return self._first_id(resolver(), resource_name, resource_key)

    def get_manufacturers(self, name: Optional[str] = None) -> ReturnResponse:
        """List manufacturers, optionally filtered by name.

        Args:
            name: Manufacturer name.

        Returns:
            ReturnResponse: Manufacturer records in ``data``.
        """
        return self._list_filtered(MANUFACTURERS_API, "manufacturer", name=name)

    def get_device_types(self, model: Optional[str] = None) -> ReturnResponse:
        """List device types, optionally filtered by model.

        Args:
            model: Device type model.

        Returns:
            ReturnResponse: Device type records in ``data``.
        """
        return self._list_filtered(DEVICE_TYPES_API, "device-type", model=model)

    def get_device_roles(
        self,
        name: Optional[str] = None,
        slug: Optional[str] = None,
    ) -> ReturnResponse:
        """List device roles filtered by name or slug (not both).

        Args:
            name: Role name.
            slug: Role slug.

        Returns:
            ReturnResponse: Device role records in ``data``.
        """
        return self._list_filtered(DEVICE_ROLES_API, "device-role", name=name, slug=slug)

    def get_sites(self, name: Optional[str] = None, slug: Optional[str] = None) -> ReturnResponse:
        """List sites filtered by name or slug (not both).

        Args:
            name: Site name.
            slug: Site slug.

        Returns:
            ReturnResponse: Site records in ``data``.
        """
        return self._list_filtered(SITES_API, "site", name=name, slug=slug)

    def get_devices(self, name: Optional[str] = None) -> ReturnResponse:
        """List devices, optionally filtered by name.

        Args:
            name: Device name.

        Returns:
            ReturnResponse: Device records in ``data``.
        """
        return self._list_filtered(DEVICES_API, "device", name=name)

    def get_ip_addresses(self) -> ReturnResponse:
        """List IP addresses (first page, unfiltered)."""
        return self._list(IP_ADDRESSES_API, "ip-address")

    def _get_device_id(self, name: str) -> ReturnResponse:
        return self._first_id(self.get_devices(name=name), "device", name)

    def get_interfaces(self, device: Optional[str], name: Optional[str] = None) -> ReturnResponse:
        """List the interfaces of one device, optionally filtered by name.

        Fails with ``PREREQUISITE_NOT_FOUND`` when the device does not exist;
        the interface query is then never sent.

        Args:
            device: Device name.
            name: Interface name.

        Returns:
            ReturnResponse: Interface records in ``data``.
        """
        if device is None or not device.strip():
            return self._fail(RespCode.REQUIRED_FIELD_MISSING, "device is required")

        device_id_response = self._get_device_id(device)
        if device_id_response.code != 0:
            return device_id_response

        params = Parse.remove_dict_none_value({"device_id": device_id_response.data, "name": name})
        return self._list(INTERFACES_API, "interface", params)

    def _get_interface_id(self, device: str, name: str) -> ReturnResponse:
        return self._first_id(self.get_interfaces(device=device, name=name), "interface", f"{device}:{name}")

    def get_connections(
        self,
        device: Optional[str] = None,
        interface: Optional[str] = None,
    ) -> ReturnResponse:
        """List interface connections, optionally for one device.

        ``interface`` is accepted but does not narrow the query; callers
        filter the returned records themselves.

        Args:
            device: Device name.
            interface: Interface name (not applied).

        Returns:
            ReturnResponse: Connection records in ``data``.
        """
        if device is not None and not device.strip():
            return self._fail(RespCode.REQUIRED_FIELD_MISSING, "device must not be empty")

        params: Dict[str, Any] = {}
        if device is not None:
            device_id_response = self._get_device_id(device)
            if device_id_response.code != 0:
                return device_id_response
            params["device_id"] = device_id_response.data

        if interface is not None:
            self.logger.debug("interface filter [%s] is not applied to connection lookups", interface)

        return self._list(INTERFACE_CONNECTIONS_API, "interface-connection", params)

    def add_manufacturer(self, name: str) -> ReturnResponse:
        """Create a manufacturer with a slug derived from its name.

        Args:
            name: Manufacturer name.

        Returns:
            ReturnResponse: Created manufacturer in ``data``.
        """
        request, invalid = self._validate(NamedRequest, name=name)
        if invalid is not None:
            return invalid
        return self._create(
            MANUFACTURERS_API,
            {"name": request.name, "slug": self._slug(request.name)},
            "manufacturer",
            request.name,
        )

    def add_site(self, name: str) -> ReturnResponse:
        """Create a site with a slug derived from its name.

        Args:
            name: Site name.

        Returns:
            ReturnResponse: Created site in ``data``.
        """
        request, invalid = self._validate(NamedRequest, name=name)
        if invalid is not None:
            return invalid
        return self._create(
            SITES_API,
            {"name": request.name, "slug": self._slug(request.name)},
            "site",
            request.name,
        )

    def add_device_role(
        self,
        name: str,
        color: str = DEFAULT_ROLE_COLOR,
        vm_role: bool = True,
    ) -> ReturnResponse:
        """Create a device role.

        Args:
            name: Role name.
            color: Six hex digits or a colour name such as ``blue``.
            vm_role: Whether virtual machines may take this role.

        Returns:
            ReturnResponse: Created device role in ``data``.
        """
        request, invalid = self._validate(DeviceRoleRequest, name=name, color=color, vm_role=vm_role)
        if invalid is not None:
            return invalid
        payload = {
            "name": request.name,
            "slug": self._slug(request.name),
            "color": request.color,
            "vm_role": request.vm_role,
        }
        return self._create(DEVICE_ROLES_API, payload, "device-role", request.name)

    def _resolve_manufacturer(self, name: str, auto_create: bool = True) -> ReturnResponse:
        if not auto_create:
            return self._first_id(self.get_manufacturers(name=name), "manufacturer", name)
        return self._resolve_or_create(
            "manufacturer",
            name,
            lambda: self.get_manufacturers(name=name),
            lambda: self.add_manufacturer(name=name),
        )

    def _create_device_type(self, model: str, manufacturer_id: int, u_height: int) -> ReturnResponse:
        payload = {
            "model": model,
            "slug": self._slug(model),
            "manufacturer": manufacturer_id,
            "u_height": u_height,
        }
        return self._create(DEVICE_TYPES_API, payload, "device-type", model)

    def add_device_type(
        self,
        model: str,
        manufacturer: str,
        u_height: int = 0,
        auto_create_manufacturer: bool = True,
    ) -> ReturnResponse:
        """Create a device type, resolving its manufacturer first.

        Args:
            model: Device type model.
            manufacturer: Manufacturer name.
            u_height: Height in rack units.
            auto_create_manufacturer: Create the manufacturer when it is absent.
                When ``False`` an absent manufacturer fails the call with
                ``PREREQUISITE_NOT_FOUND`` and nothing is created.

        Returns:
            ReturnResponse: Created device type in ``data``.
        """
        request, invalid = self._validate(
            DeviceTypeRequest,
            model=model,
            manufacturer=manufacturer,
            u_height=u_height,
        )
        if invalid is not None:
            return invalid

        manufacturer_id_response = self._resolve_manufacturer(
            request.manufacturer,
            auto_create=auto_create_manufacturer,
        )
        if manufacturer_id_response.code != 0:
            return manufacturer_id_response

        return self._create_device_type(request.model, manufacturer_id_response.data, request.u_height)

    def add_device(
        self,
        name: str,
        device_role: str,
        manufacturer: str,
        device_type: str,
        site: Optional[str] = None,
    ) -> ReturnResponse:
        """Create a device, creating any missing prerequisite on the way.

        Prerequisites are resolved in order: manufacturer, device role,
        device type, site. Each absent one is created once and resolved again.
        The first failing step ends the call; nothing after it is sent.
        ``site=None`` skips site resolution and leaves ``site`` out of the
        payload.
        A device type created here has a height of 0U; use
        ``add_device_type`` first for any other height.

        Args:
            name: Device name.
            device_role: Device role name.
            manufacturer: Manufacturer name.
            device_type: Device type model.
            site: Site name.

        Returns:
            ReturnResponse: Created device in ``data``.
        """
        request, invalid = self._validate(
            DeviceRequest,
            name=name,
            device_role=device_role,
            manufacturer=manufacturer,
            device_type=device_type,
            site=site,
        )
        if invalid is not None:
            return invalid

        manufacturer_id_response = self._resolve_manufacturer(request.manufacturer)
        if manufacturer_id_response.code != 0:
            return manufacturer_id_response

        role_id_response = self._resolve_or_create(
            "device-role",
            request.device_role,
            lambda: self.get_device_roles(name=request.device_role),
            lambda: self.add_device_role(name=request.device_role),
        )
        if role_id_response.code != 0:
            return role_id_response

        device_type_id_response = self._resolve_or_create(
            "device-type",
            request.device_type,
            lambda: self.get_device_types(model=request.device_type),
            lambda: self._create_device_type(request.device_type, manufacturer_id_response.data, 0),
        )
        if device_type_id_response.code != 0:
            return device_type_id_response

        site_id: Optional[int] = None
        if request.site is not None:
            site_id_response = self._resolve_or_create(
                "site",
                request.site,
                lambda: self.get_sites(name=request.site),
                lambda: self.add_site(name=request.site),
            )
            if site_id_response.code != 0:
                return site_id_response
            site_id = site_id_response.data

        payload = Parse.remove_dict_none_value(
            {
                "name": request.name,
                "device_role": role_id_response.data,
                "manufacturer": manufacturer_id_response.data,
                "device_type": device_type_id_response.data,
                "site": site_id,
            }
        )
        return self._create(DEVICES_API, payload, "device", request.name)

    def add_interface(
        self,
        device: str,
        name: str,
        mac_address: Optional[str] = None,
        description: Optional[str] = None,
        form_factor: Optional[Union[int, str]] = None,
        mtu: Optional[int] = None,
        enabled: Optional[bool] = None,
    ) -> ReturnResponse:
        """Create an interface on an existing device.

        The device is never created here. Optional fields left as ``None``
        are not sent at all.

        Args:
            device: Device name.
            name: Interface name.
            mac_address: MAC address.
            description: Description text.
            form_factor: NetBox interface form factor.
            mtu: MTU.
            enabled: Administrative state.

        Returns:
            ReturnResponse: Created interface in ``data``.
        """
        request, invalid = self._validate(
            InterfaceRequest,
            device=device,
            name=name,
            mac_address=mac_address,
            description=description,
            form_factor=form_factor,
            mtu=mtu,
            enabled=enabled,
        )
        if invalid is not None:
            return invalid

        device_id_response = self._get_device_id(request.device)
        if device_id_response.code != 0:
            return device_id_response

        payload = request.model_dump(exclude_none=True)
        payload["device"] = device_id_response.data
        return self._create(INTERFACES_API, payload, "interface", f"{request.device}:{request.name}")

    def add_connection(
        self,
        device_a: str,
        interface_a: str,
        device_b: str,
        interface_b: str,
    ) -> ReturnResponse:
        """Connect two existing interfaces.

        Both interfaces are resolved before anything is written; if either is
        missing no connection is created.

        Args:
            device_a: Device name of the A side.
            interface_a: Interface name of the A side.
            device_b: Device name of the B side.
            interface_b: Interface name of the B side.

        Returns:
            ReturnResponse: Created connection in ``data``.
        """
        request, invalid = self._validate(
            ConnectionRequest,
            device_a=device_a,
            interface_a=interface_a,
            device_b=device_b,
            interface_b=interface_b,
        )
        if invalid is not None:
            return invalid

        a_id_response = self._get_interface_id(request.device_a, request.interface_a)
        if a_id_response.code != 0:
            return a_id_response

        b_id_response = self._get_interface_id(request.device_b, request.interface_b)
        if b_id_response.code != 0:
            return b_id_response

        payload = {"interface_a": a_id_response.data, "interface_b": b_id_response.data}
        return self._create(
            INTERFACE_CONNECTIONS_API,
            payload,
            "interface-connection",
            f"{request.device_a}:{request.interface_a} <-> {request.device_b}:{request.interface_b}",
        )
