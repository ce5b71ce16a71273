#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Final, Self

from tencentcloud_common.requests import BaseRequest
from tencentcloud_common.responses import BaseResponse

SERVICE: Final = "ccc"
API_VERSION: Final = "2020-02-10"


@dataclass(kw_only=True)
class _CccRequest(BaseRequest):
    service: str = SERVICE
    version: str = API_VERSION


@dataclass(kw_only=True)
class SeatUserInfo:
    """A seat to create in a contact center application."""

    name: str = field(metadata={"name": "Name"})
    mail: str = field(metadata={"name": "Mail"})
    phone: str | None = field(default=None, metadata={"name": "Phone"})
    nick: str | None = field(default=None, metadata={"name": "Nick"})
    user_id: str | None = field(default=None, metadata={"name": "UserId"})
    staff_number: str | None = field(default=None, metadata={"name": "StaffNumber"})


@dataclass(kw_only=True)
class ErrStaffItem:
    staff_email: str | None = None
    code: str | None = None
    message: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            staff_email=data.get("StaffEmail"),
            code=data.get("Code"),
            message=data.get("Message"),
        )


@dataclass(kw_only=True)
class IMCdrInfo:
    """A record of an instant messaging session."""

    id: str | None = None
    duration: int | None = None
    end_status: int | None = None
    nickname: str | None = None
    type: int | None = None
    staff_id: str | None = None
    timestamp: int | None = None
    session_id: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            id=data.get("Id"),
            duration=data.get("Duration"),
            end_status=data.get("EndStatus"),
            nickname=data.get("Nickname"),
            type=data.get("Type"),
            staff_id=data.get("StaffId"),
            timestamp=data.get("Timestamp"),
            session_id=data.get("SessionId"),
        )


@dataclass(kw_only=True)
class CreateSDKLoginTokenRequest(_CccRequest):
    action: str = "CreateSDKLoginToken"

    sdk_app_id: int | None = field(default=None, metadata={"name": "SdkAppId"})
    seat_user_id: str | None = field(default=None, metadata={"name": "SeatUserId"})


@dataclass(kw_only=True)
class CreateSDKLoginTokenResponse(BaseResponse):
    token: str | None = None
    expired_time: int | None = None
    sdk_url: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            request_id=data.get("RequestId"),
            raw=dict(data),
            token=data.get("Token"),
            expired_time=data.get("ExpiredTime"),
            sdk_url=data.get("SdkURL"),
        )


@dataclass(kw_only=True)
class CreateStaffRequest(_CccRequest):
    action: str = "CreateStaff"

    sdk_app_id: int | None = field(default=None, metadata={"name": "SdkAppId"})
    staffs: list[SeatUserInfo] | None = field(default=None, metadata={"name": "Staffs"})


@dataclass(kw_only=True)
class CreateStaffResponse(BaseResponse):
    error_staff_list: list[ErrStaffItem] = field(default_factory=list)
    """Seats that could not be created."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            request_id=data.get("RequestId"),
            raw=dict(data),
            error_staff_list=[
                ErrStaffItem.from_dict(item)
                for item in data.get("ErrorStaffList") or []
            ],
        )


@dataclass(kw_only=True)
class DescribeChatMessagesRequest(_CccRequest):
    action: str = "DescribeChatMessages"

    instance_id: int | None = field(default=None, metadata={"name": "InstanceId"})
    sdk_app_id: int | None = field(default=None, metadata={"name": "SdkAppId"})
    cdr_id: str | None = field(default=None, metadata={"name": "CdrId"})
    limit: int | None = field(default=None, metadata={"name": "Limit"})
    offset: int | None = field(default=None, metadata={"name": "Offset"})
    order: int | None = field(default=None, metadata={"name": "Order"})
    """``0`` for ascending, ``1`` for descending."""

    session_id: str | None = field(default=None, metadata={"name": "SessionId"})


@dataclass(kw_only=True)
class DescribeChatMessagesResponse(BaseResponse):
    total_count: int | None = None
    messages: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            request_id=data.get("RequestId"),
            raw=dict(data),
            total_count=data.get("TotalCount"),
            messages=list(data.get("Messages") or []),
        )


@dataclass(kw_only=True)
class DescribeIMCdrsRequest(_CccRequest):
    action: str = "DescribeIMCdrs"

    start_timestamp: int | None = field(
        default=None, metadata={"name": "StartTimestamp"}
    )
    end_timestamp: int | None = field(default=None, metadata={"name": "EndTimestamp"})
    instance_id: int | None = field(default=None, metadata={"name": "InstanceId"})
    sdk_app_id: int | None = field(default=None, metadata={"name": "SdkAppId"})
    limit: int | None = field(default=None, metadata={"name": "Limit"})
    offset: int | None = field(default=None, metadata={"name": "Offset"})
    type: int | None = field(default=None, metadata={"name": "Type"})
    """``1`` for chat records, ``2`` for service records."""


@dataclass(kw_only=True)
class DescribeIMCdrsResponse(BaseResponse):
    total_count: int | None = None
    im_cdrs: list[IMCdrInfo] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            request_id=data.get("RequestId"),
            raw=dict(data),
            total_count=data.get("TotalCount"),
            im_cdrs=[IMCdrInfo.from_dict(item) for item in data.get("IMCdrs") or []],
        )


@dataclass(kw_only=True)
class DescribeTelCdrRequest(_CccRequest):
    action: str = "DescribeTelCdr"

    start_time_stamp: int | None = field(
        default=None, metadata={"name": "StartTimeStamp"}
    )
    end_time_stamp: int | None = field(default=None, metadata={"name": "EndTimeStamp"})
    instance_id: int | None = field(default=None, metadata={"name": "InstanceId"})
    limit: int | None = field(default=None, metadata={"name": "Limit"})
    offset: int | None = field(default=None, metadata={"name": "Offset"})
    sdk_app_id: int | None = field(default=None, metadata={"name": "SdkAppId"})
    page_size: int | None = field(default=None, metadata={"name": "PageSize"})
    page_number: int | None = field(default=None, metadata={"name": "PageNumber"})
    phones: list[str] | None = field(default=None, metadata={"name": "Phones"})
    session_ids: list[str] | None = field(default=None, metadata={"name": "SessionIds"})


@dataclass(kw_only=True)
class DescribeTelCdrResponse(BaseResponse):
    total_count: int | None = None
    tel_cdrs: list[dict[str, Any]] = field(default_factory=list)
    """Call detail records, left as documents."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            request_id=data.get("RequestId"),
            raw=dict(data),
            total_count=data.get("TotalCount"),
            tel_cdrs=list(data.get("TelCdrs") or []),
        )
