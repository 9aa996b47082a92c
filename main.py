import argparse
import io
import logging
import sys

# Windows UTF-8 兼容性处理
if sys.platform.startswith('win'):
    # type: ignore (针对特定平台的重写)
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

from chatflow import ChatService, Config, FlowResult, MessageType
from chatflow.exceptions import ChatFlowError, InvalidResponseError


def print_messages(result: FlowResult) -> None:
    for message in result.messages:
        print(f"[{message.sender}] {message.text}")
        if message.type == MessageType.CHOICE:
            for index, choice in enumerate(message.choices or []):
                print(f"    {index}. {choice.text}")


def read_response(service: ChatService, message_id: int):
    """读取用户输入；选项消息接受序号或文本"""
    message = service.sequences.get_message(message_id)
    prompt = "> " if message.type == MessageType.CHOICE else f"({message.placeholder_text}) > "
    raw = input(prompt).strip()
    if message.type == MessageType.CHOICE and raw.isdigit():
        return int(raw)
    return raw


def main() -> int:
    """主函数"""
    parser = argparse.ArgumentParser(description="ChatFlow console runner")
    parser.add_argument("--data-dir", default=None, help=f"数据目录 (默认 ${Config.DATA_DIR_ENV} 或 {Config.DATA_DIR})")
    parser.add_argument("--sequence", default=Config.DEFAULT_SEQUENCE_ID, help="起始序列 ID")
    parser.add_argument("--verbose", action="store_true", help="输出 DEBUG 日志")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print("=" * 80)
    print("ChatFlow 对话脚本运行器")
    print("=" * 80)
    print()

    service = ChatService(args.data_dir)
    try:
        result = service.start(args.sequence)
        print_messages(result)

        while result.awaiting_interaction:
            try:
                value = read_response(service, result.interaction_message_id)
            except (EOFError, KeyboardInterrupt):
                print()
                return 0
            try:
                result = service.submit_user_response(result.interaction_message_id, value)
            except InvalidResponseError as e:
                print(f"❌ {e}")
                continue
            print_messages(result)

        print()
        print("=" * 80)
        print("对话结束" if result.complete else "对话被截断 (达到处理上限)")
        print("=" * 80)

    except ChatFlowError as e:
        print(f"❌ 错误: {e}")
        return 1

    return 0


if __name__ == "__main__":
    exit_code: int = main()
    sys.exit(exit_code)
