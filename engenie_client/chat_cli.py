#!/usr/bin/env python3
"""
Engenie Chat CLI

Terminal driver for the product-recommendation conversation.

Usage:
    python -m engenie_client.chat_cli                       # Start a conversation
    python -m engenie_client.chat_cli --base-url http://host:5000
    python -m engenie_client.chat_cli --input "I need a pressure transmitter"
    python -m engenie_client.chat_cli --log-level DEBUG

Commands inside the chat:
    /describe <field>   Describe a requirement field
    /retry              Run the analysis again
    /new                Start a new search in the same session
    /quit               Exit
"""

import argparse
import logging
import sys

from .agentic import ChatMessage, MessageType, Notification, SalesWorkflow
from .api import BackendClient, BackendError
from .config import WorkflowConfig

logger = logging.getLogger(__name__)


def _print_message(message: ChatMessage):
    speaker = "You" if message.type == MessageType.USER else "Engenie"
    print(f"\n{speaker}: {message.content.strip()}")


def _print_notification(notification: Notification):
    print(f"\n[{notification.title}] {notification.description}")


def run_chat(workflow: SalesWorkflow, initial_input: str = ""):
    shown = 0
    pending = initial_input

    while True:
        try:
            prompt = f"\n[{workflow.current_step.value}] > "
            if pending:
                print(f"{prompt}{pending}")
                user_input, pending = pending, ""
            else:
                user_input = input(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            break

        command = user_input.strip()
        if command == "/quit":
            break
        if command == "/new":
            workflow.new_search()
            shown = 0
            print("Started a new search.")
            continue
        if command == "/retry":
            workflow.retry_analysis()
        elif command.startswith("/describe "):
            field_name = command[len("/describe "):].strip()
            try:
                print(f"{field_name}: {workflow.describe_field(field_name)}")
            except BackendError as e:
                print(f"Could not describe {field_name}: {e}")
            continue
        else:
            workflow.handle_send_message(user_input)

        messages = workflow.state.messages
        for message in messages[shown:]:
            if message.type != MessageType.USER:
                _print_message(message)
        shown = len(messages)


def main():
    parser = argparse.ArgumentParser(description="Chat with the Engenie product recommendation assistant")
    parser.add_argument("--base-url", default=None, help=f"Backend base URL (default: {WorkflowConfig.BASE_URL})")
    parser.add_argument("--input", default="", help="First message to send")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        WorkflowConfig.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    WorkflowConfig.log_config()

    with SalesWorkflow(client=BackendClient(base_url=args.base_url)) as workflow:
        workflow.add_notification_listener(_print_notification)
        print(f"Engenie session {workflow.session_id}. Type /quit to exit.")
        run_chat(workflow, args.input)


if __name__ == "__main__":
    main()
