"""Playground client example.

Demonstrates:
- Joining a room with the initial session configuration as participant metadata
- Waiting for the agent to join
- Reconfiguring the live session through the pg.updateConfig RPC

Usage:
    python examples/update_config_client.py --room playground
    python examples/update_config_client.py --voice verse --temperature 0.9
"""

import argparse
import asyncio
import json
import os
import sys

from dotenv import load_dotenv
from livekit import api, rtc

from playground_agent.session_config import SessionConfig, ServerVadTurnDetection


def build_token(identity: str, room_name: str, metadata: str) -> str:
    """Create an access token carrying the session configuration."""
    token = (
        api.AccessToken(os.environ["LIVEKIT_API_KEY"], os.environ["LIVEKIT_API_SECRET"])
        .with_identity(identity)
        .with_name(identity)
        .with_metadata(metadata)
        .with_grants(api.VideoGrants(room_join=True, room=room_name))
    )
    return token.to_jwt()


async def wait_for_agent(room: rtc.Room, timeout: float) -> str:
    """Wait until a remote participant (the agent) is present."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not room.remote_participants:
        if loop.time() > deadline:
            raise TimeoutError("Agent did not join the room")
        await asyncio.sleep(0.2)
    return next(iter(room.remote_participants))


async def main(args: argparse.Namespace) -> int:
    initial = SessionConfig(
        instructions="You are a helpful assistant.",
        voice="alloy",
        temperature=0.8,
        turn_detection=ServerVadTurnDetection(type="server_vad"),
    )
    updated = SessionConfig(
        instructions=args.instructions,
        voice=args.voice,
        temperature=args.temperature,
        turn_detection=ServerVadTurnDetection(type="server_vad", silence_duration_ms=500),
    )

    room = rtc.Room()
    token = build_token(args.identity, args.room, initial.to_metadata())
    await room.connect(os.environ["LIVEKIT_URL"], token)
    print(f"→ Joined room {args.room} as {args.identity}")

    try:
        agent_identity = await wait_for_agent(room, timeout=args.timeout)
        print(f"← Agent joined ({agent_identity})")

        response = await room.local_participant.perform_rpc(
            destination_identity=agent_identity,
            method="pg.updateConfig",
            payload=updated.to_metadata(),
        )
        result = json.loads(response)
        print(f"← pg.updateConfig: {result}")
        return 0 if result.get("changed") else 1
    except (TimeoutError, rtc.RpcError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    finally:
        await room.disconnect()


if __name__ == "__main__":
    load_dotenv(".env.local")
    load_dotenv()

    parser = argparse.ArgumentParser(description="Reconfigure a running playground session")
    parser.add_argument("--room", default="playground")
    parser.add_argument("--identity", default="playground-user")
    parser.add_argument("--instructions", default="Answer like a pirate, briefly.")
    parser.add_argument("--voice", default="verse")
    parser.add_argument("--temperature", type=float, default=0.9)
    parser.add_argument("--timeout", type=float, default=30.0)

    sys.exit(asyncio.run(main(parser.parse_args())))
