#  SPDX-License-Identifier: Apache-2.0
from tencentcloud_common.aio.client import Client

from .models import (
    API_VERSION,
    SERVICE,
    CreateSDKLoginTokenRequest,
    CreateSDKLoginTokenResponse,
    CreateStaffRequest,
    CreateStaffResponse,
    DescribeChatMessagesRequest,
    DescribeChatMessagesResponse,
    DescribeIMCdrsRequest,
    DescribeIMCdrsResponse,
    DescribeTelCdrRequest,
    DescribeTelCdrResponse,
)

__all__ = ("API_VERSION", "CccClient")


class CccClient(Client):
    """Client for the Cloud Contact Center API."""

    SERVICE = SERVICE
    API_VERSION = API_VERSION

    async def create_sdk_login_token(
        self, request: CreateSDKLoginTokenRequest, *, deadline: float | None = None
    ) -> CreateSDKLoginTokenResponse:
        """Create a login token for the contact center SDK."""
        return await self.send(request, CreateSDKLoginTokenResponse, deadline=deadline)

    async def create_staff(
        self, request: CreateStaffRequest, *, deadline: float | None = None
    ) -> CreateStaffResponse:
        """Create customer service seats."""
        return await self.send(request, CreateStaffResponse, deadline=deadline)

    async def describe_chat_messages(
        self, request: DescribeChatMessagesRequest, *, deadline: float | None = None
    ) -> DescribeChatMessagesResponse:
        """List the messages of an online session."""
        return await self.send(request, DescribeChatMessagesResponse, deadline=deadline)

    async def describe_im_cdrs(
        self, request: DescribeIMCdrsRequest, *, deadline: float | None = None
    ) -> DescribeIMCdrsResponse:
        """List instant messaging service records."""
        return await self.send(request, DescribeIMCdrsResponse, deadline=deadline)

    async def describe_tel_cdr(
        self, request: DescribeTelCdrRequest, *, deadline: float | None = None
    ) -> DescribeTelCdrResponse:
        """List telephone call detail records."""
        return await self.send(request, DescribeTelCdrResponse, deadline=deadline)
