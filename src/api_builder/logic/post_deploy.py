"""
Post-deploy orchestration.

Named steps run after the API has been deployed, strictly one at a time and
in registration order, because later steps may rely on side effects of
earlier ones. The first failing step aborts the run.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import boto3

from api_builder.exceptions import ConfigurationError
from api_builder.handlers.invocation import call, unwrap
from api_builder.utils.ask import ask
from api_builder.utils.observability import logger, tracer
from api_builder.utils.sequential import sequential_map

Prompter = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class PostDeployStep:
    """A named unit of work run after deployment."""

    name: str
    fn: Callable[..., Any]


class PostDeployOrchestrator:
    """Registry and runner for post-deploy steps."""

    def __init__(self, prompter: Optional[Prompter] = None):
        self._steps: List[PostDeployStep] = []
        self._prompter: Prompter = prompter or ask

    @property
    def steps(self) -> List[PostDeployStep]:
        return list(self._steps)

    def register(self, name: Any, fn: Any) -> None:
        """
        Register a step.

        Raises:
            ConfigurationError: for blank names, non-callable steps or duplicate names
        """
        if not name or not isinstance(name, str):
            raise ConfigurationError('addPostDeployStep requires a step name as the first argument')
        if not callable(fn):
            raise ConfigurationError('addPostDeployStep requires a function as the second argument')
        if any(step.name == name for step in self._steps):
            raise ConfigurationError(f'Post deploy hook "{name}" already exists')
        self._steps.append(PostDeployStep(name=name, fn=fn))
        logger.debug("Registered post-deploy step", extra={"step": name})

    def register_stage_variable(self, stage_var_name: str, prompt: str, config_key: str) -> None:
        """Register a step that deploys a stage variable taken from options or a prompt."""

        async def deploy_stage_variable(options: Dict[str, Any], deploy_ctx: Dict[str, Any], utils: Optional[Dict[str, Any]]) -> Any:
            value = (options or {}).get(config_key)
            if not value:
                return None
            if value is True:
                value = await self._prompter(prompt)

            client = (utils or {}).get('api_gateway') or boto3.client('apigateway')
            logger.info(
                "Deploying stage variable",
                extra={"variable": stage_var_name, "api_id": deploy_ctx.get('api_id'), "stage": deploy_ctx.get('alias')},
            )
            await asyncio.to_thread(
                client.create_deployment,
                restApiId=deploy_ctx['api_id'],
                stageName=deploy_ctx['alias'],
                variables={stage_var_name: value},
            )
            return value

        self.register(stage_var_name, deploy_stage_variable)

    @tracer.capture_method
    async def run(self, options: Any, deploy_ctx: Any, utils: Any = None) -> Union[bool, Dict[str, Any]]:
        """
        Run every registered step in order.

        Returns:
            False when no steps are registered, otherwise a map of step name to result

        Raises:
            The error of the first failing step
        """
        if not self._steps:
            return False

        async def run_step(step: PostDeployStep, index: int) -> Any:
            logger.info("Running post-deploy step", extra={"step": step.name, "index": index})
            return unwrap(await call(step.fn, options, deploy_ctx, utils))

        steps = self.steps
        results = await sequential_map(steps, run_step)
        return {step.name: result for step, result in zip(steps, results)}
