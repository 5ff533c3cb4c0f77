"""
Agent factory for the content pipeline.

```python
from sportello.agents.factory import create_agent_by_name

agent = create_agent_by_name("builder", trace_attributes={"build.id": "build-1a2b3c4d"})
result = await agent.invoke_async("Build a snake game ...")
```

Available agents: architect, builder, tester, scribe.
"""

from sportello.agents.factory.agent_factory import (
    create_agent_by_name,
)

__all__ = [
    "create_agent_by_name",
]
