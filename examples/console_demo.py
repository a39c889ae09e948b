"""
Console Demo

Runs one request through the Orchestrator with a canned model and prints
the streamed text, tool activity and a session summary with rich.

No API key is needed: ``CannedModel`` plays back two responses, one asking
for a tool and one answering with its result.
"""

import asyncio

from pydantic import BaseModel

from tether import (
    MemoryStore, Message, ModelPromptResult, Orchestrator, OrchestratorConfig, ToolCall,
    define_tool,
)
from tether.types import MODEL_RESPONSE_COMPLETE, TEXT_DELTA, TOOL_USE
from tether.visualization import ConsoleSubscriber


class WeatherInput(BaseModel):
    city: str


async def get_weather(input: WeatherInput, handover=None):
    await asyncio.sleep(0.2)
    return {"status": "success", "data": f"Sunny, 21C in {input.city}"}


class CannedModel:
    name = "canned"

    def __init__(self):
        self.calls = 0

    def set_system_prompt(self, text):
        pass

    async def prompt(self, request, notify, signal=None):
        self.calls += 1
        if self.calls == 1:
            call = ToolCall(tool_name="get_weather", input_args={"city": "Lisbon"}, id="w1")
            await notify(TEXT_DELTA, {"text": "Let me check the weather."})
            await notify(TOOL_USE, {"id": call.id, "name": call.tool_name, "input": call.input_args})
            msg = Message(sender="agent", text="Let me check the weather.", tool_calls=[call])
        else:
            observation = request.messages[-1].tool_results[0].result.data
            text = f"It is {observation.lower()}."
            for word in text.split(" "):
                await notify(TEXT_DELTA, {"text": word + " "})
                await asyncio.sleep(0.05)
            msg = Message(sender="agent", text=text)
        result = ModelPromptResult(messages=[msg], tokens_in=120, tokens_out=30)
        await notify(MODEL_RESPONSE_COMPLETE, result)
        return result


async def main():
    console_sub = ConsoleSubscriber()
    orch = Orchestrator(OrchestratorConfig(
        store=MemoryStore("demo"),
        model=CannedModel(),
        system_prompt="You are a weather assistant.",
        tools=[define_tool("get_weather", "Current weather for a city", WeatherInput, get_weather)],
        subscribers=[console_sub],
    ))

    await orch.process_request("What's the weather in Lisbon?")
    console_sub.print_summary()


if __name__ == "__main__":
    asyncio.run(main())
