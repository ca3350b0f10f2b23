"""
Prompts for the BPMN chat assistant.
"""

LABELING_CONVENTIONS = """- Events should be labeled using object + past participle.
- Start events should always be labeled with an indication of the trigger of the process.
- End events should be labeled with the end state of the process.
- Tasks should be labeled using object + verb.
- Exclusive gateways should be labeled with a yes/no question.
- The outgoing sequence flows of an exclusive gateway should be labeled with the answer they represent.
- All other sequence flows should not be labeled.
- Start events must have exactly one outgoing sequence flow.
- End events must have exactly one incoming sequence flow.
- All other elements must have at least one incoming and one outgoing sequence flow."""


CONNECTIVITY_RULE = """All BPMN processes you produce must be valid: every element must be connected.
Every element must be reachable from a start event and must be able to reach an end event.
There must be no isolated elements."""


CREATE_PROCESS_TEMPLATE = """
# ROLE
You are a BPMN expert that creates a valid BPMN process according to a description.

# RULES
{connectivity_rule}
If the description does not describe a process, reply with the single word {sentinel} and nothing else.

# LABELING CONVENTIONS
{labeling_conventions}

# OUTPUT FORMAT
{format_instructions}

# DESCRIPTION
{description}

Output:"""


UPDATE_PROCESS_TEMPLATE = """
# ROLE
You are a BPMN expert that updates a valid BPMN process according to the requested changes.

# RULES
{connectivity_rule}
Keep the ids of elements that do not change.
If the requested changes are not related to the process, reply with the single word {sentinel} and nothing else.

# LABELING CONVENTIONS
{labeling_conventions}

# OUTPUT FORMAT
{format_instructions}

# CURRENT BPMN PROCESS
{process}

# REQUESTED CHANGES
{requested_changes}

Output:"""


GREETING = "Let's start by describing the process you want to create."
CREATED_MESSAGE = "I created the process according to your description."
UPDATED_MESSAGE = "I updated the process according to the changes you requested."